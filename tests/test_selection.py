"""
Selection tests - single choice per parent selection group.
"""
import random

import pytest

from conftest import make_upgrade
from proposal_tool.engine.selection import find_conflicts, normalize_selection, toggle_selection


@pytest.fixture
def catalog():
    return [
        make_upgrade(1, "Kitchen", "Island", "Faucet", "Chrome"),
        make_upgrade(2, "Kitchen", "Island", "Faucet", "Brass"),
        make_upgrade(3, "Kitchen", "Island", "Faucet", "Matte Black"),
        make_upgrade(4, "Kitchen", "Perimeter", "Faucet", "Chrome"),
        make_upgrade(5, "Bath", "Primary", "Tile", "Marble"),
    ]


def test_toggle_adds_unselected(catalog):
    assert toggle_selection(set(), 1, catalog) == {1}


def test_toggle_removes_selected(catalog):
    assert toggle_selection({1, 5}, 1, catalog) == {5}


def test_toggle_replaces_sibling(catalog):
    assert toggle_selection({1, 5}, 2, catalog) == {2, 5}


def test_same_parent_different_location_is_independent(catalog):
    assert toggle_selection({1}, 4, catalog) == {1, 4}


def test_toggle_does_not_mutate_input(catalog):
    selected = {1}
    toggle_selection(selected, 2, catalog)
    assert selected == {1}


def test_toggle_unknown_upgrade(catalog):
    with pytest.raises(ValueError, match="not found"):
        toggle_selection({1}, 99, catalog)


def test_toggle_keeps_ids_outside_catalog(catalog):
    assert toggle_selection({42}, 1, catalog) == {42, 1}


def test_random_toggles_never_conflict(catalog):
    rng = random.Random(7)
    selected = set()
    for _ in range(200):
        selected = toggle_selection(selected, rng.choice([1, 2, 3, 4, 5]), catalog)
        assert find_conflicts(selected, catalog) == {}


def test_find_conflicts(catalog):
    conflicts = find_conflicts([1, 2, 5], catalog)
    assert conflicts == {("Kitchen", "Island", "Faucet"): [1, 2]}


def test_normalize_last_wins(catalog):
    ids, warnings = normalize_selection([1, 5, 2], catalog)

    assert ids == [5, 2]
    assert len(warnings) == 1
    assert "Brass" in warnings[0]


def test_normalize_drops_unknown(catalog):
    ids, warnings = normalize_selection([5, 99, 5], catalog)

    assert ids == [5]
    assert any("99" in w for w in warnings)
