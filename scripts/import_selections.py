#!/usr/bin/env python
"""
Import pipeline - seeds default templates and loads selection sheets.

Usage:
    python scripts/import_selections.py
    python scripts/import_selections.py "data/selections/Ravello Selections.xlsx"
"""
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from proposal_tool.config.settings import configure_logging, discover_selection_sheets, get_settings
from proposal_tool.data.import_selections import import_template_upgrades, seed_templates
from proposal_tool.db.database import get_session_factory, init_db


def main():
    settings = get_settings()
    configure_logging(settings)

    print("=" * 60)
    print("PROPOSAL TOOL SELECTION IMPORT")
    print("=" * 60)
    print()

    print("[1/2] Preparing database...")
    init_db()
    session = get_session_factory()()
    seeded = seed_templates(session)
    print(f"  Templates seeded: {seeded}")

    sheets = settings.selection_sheets
    if len(sys.argv) > 1:
        sheets = {}
        for arg in sys.argv[1:]:
            path = Path(arg)
            if path.is_dir():
                sheets.update(discover_selection_sheets(path))
            else:
                sheets[path.stem.split()[0].split('_')[0]] = path

    print()
    print(f"[2/2] Importing {len(sheets)} selection sheet(s)...")
    reports = {}
    try:
        for template, path in sheets.items():
            print(f"  {template} <- {path.name}")
            reports[template] = import_template_upgrades(session, template, path, verbose=True)
    finally:
        session.close()

    failed = [name for name, report in reports.items() if report["status"] != "success"]
    if failed or not reports:
        print("\n❌ IMPORT FAILED")
        if not reports:
            print(f"  ERROR: No selection sheets found in {settings.selections_dir}")
        for name in failed:
            for error in reports[name]["errors"]:
                print(f"  ERROR: {error}")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ IMPORT COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    for name, report in reports.items():
        metrics = report["metrics"]
        print(f"  {name}: {metrics['upgrades_imported']} upgrades, "
              f"{metrics['categories']} categories, {metrics['rows_rejected']} rejected")
        for warning in report["warnings"]:
            print(f"    WARNING: {warning}")


if __name__ == "__main__":
    main()
