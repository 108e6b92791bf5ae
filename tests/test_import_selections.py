"""
Selection sheet import tests.
"""
import pandas as pd
import pytest
from sqlalchemy import select

from proposal_tool.config.settings import discover_selection_sheets
from proposal_tool.data.import_selections import (
    DEFAULT_TEMPLATES, import_all_selections, import_template_upgrades, read_selection_sheet, seed_templates,
)
from proposal_tool.db.models import HomeTemplate, Upgrade


def write_sheet(path, rows):
    pd.DataFrame(rows).to_excel(path, index=False)
    return path


@pytest.fixture
def sheet(tmp_path):
    # Headers carry the stray whitespace found in real selection exports
    rows = [
        {'Parent Selection': 'Faucet', 'Choice Title': 'Chrome', 'Category': 'Kitchen',
         'Location': 'Island', ' Builder Cost ': 300, ' Client Price ': 500, 'Margin': 40},
        {'Parent Selection': 'Faucet', 'Choice Title': 'Brass', 'Category': 'Kitchen',
         'Location': 'Island', ' Builder Cost ': 450, ' Client Price ': 600, 'Margin': None},
        {'Parent Selection': None, 'Choice Title': 'Orphan', 'Category': 'Kitchen',
         'Location': None, ' Builder Cost ': 1, ' Client Price ': 2, 'Margin': None},
        {'Parent Selection': 'Tile', 'Choice Title': 'Marble', 'Category': 'Bath',
         'Location': None, ' Builder Cost ': 1000, ' Client Price ': 1500, 'Margin': 33.33},
    ]
    return write_sheet(tmp_path / "Ravello Selections_Short List.xlsx", rows)


def test_read_selection_sheet(sheet):
    rows, stats = read_selection_sheet(sheet)

    assert [r['choice_title'] for r in rows] == ['Chrome', 'Brass', 'Marble']
    assert stats == {"rows_read": 4, "rows_rejected": 1, "derived_margins": 1}
    assert rows[0]['builder_cost'] == 300.0
    assert rows[1]['margin'] == 25.0
    assert rows[2]['location'] is None


def test_missing_column(tmp_path):
    path = write_sheet(tmp_path / "Bad.xlsx", [{'Choice Title': 'x', 'Category': 'y'}])
    with pytest.raises(ValueError, match="Parent Selection"):
        read_selection_sheet(path)


def test_import_replaces_template_upgrades(session, sheet):
    session.add(Upgrade(template="Ravello", category="Old", choice_title="Stale"))
    session.add(Upgrade(template="Verona", category="Kitchen", choice_title="Keep"))
    session.commit()

    report = import_template_upgrades(session, "Ravello", sheet)

    assert report["status"] == "success"
    assert report["input_files"]["selections"]["hash"]
    assert report["metrics"]["upgrades_removed"] == 1
    assert report["metrics"]["upgrades_imported"] == 3
    assert report["metrics"]["categories"] == 2
    assert len(report["warnings"]) == 2

    titles = session.scalars(select(Upgrade.choice_title).where(Upgrade.template == "Ravello")).all()
    assert sorted(titles) == ["Brass", "Chrome", "Marble"]
    assert session.scalars(select(Upgrade).where(Upgrade.template == "Verona")).first() is not None


def test_import_missing_file(session, tmp_path):
    report = import_template_upgrades(session, "Ravello", tmp_path / "missing.xlsx")

    assert report["status"] == "failed"
    assert report["errors"]


def test_import_unreadable_sheet(session, tmp_path):
    path = write_sheet(tmp_path / "Sorrento.xlsx", [{'Choice Title': 'x'}])
    report = import_template_upgrades(session, "Sorrento", path)

    assert report["status"] == "failed"
    assert "missing column" in report["errors"][0]


def test_import_all_uses_discovered_sheets(session, settings, sheet):
    settings.selection_sheets = discover_selection_sheets(sheet.parent)

    result = import_all_selections(session, settings, verbose=False)

    assert list(result["templates"]) == ["Ravello"]
    assert result["status"] == "success"
    assert result["upgrades_imported"] == 3


def test_discover_skips_lock_files(tmp_path):
    write_sheet(tmp_path / "Verona_Selections.xlsx", [{'a': 1}])
    (tmp_path / "~$Verona_Selections.xlsx").write_bytes(b"")

    assert discover_selection_sheets(tmp_path) == {"Verona": tmp_path / "Verona_Selections.xlsx"}


def test_seed_templates_once(session):
    assert seed_templates(session) == len(DEFAULT_TEMPLATES)
    assert seed_templates(session) == 0

    ravello = session.scalars(select(HomeTemplate).where(HomeTemplate.name == "Ravello")).one()
    assert ravello.base_price == 630990
    assert ravello.base_cost == 500000
