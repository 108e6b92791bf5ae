"""
Selection Importer - Loads per-template Excel selection sheets into the
upgrades table.

Each workbook lists one upgrade per row. Importing a template clears its
existing upgrades and refills them from the sheet, then returns a build
report with input hashes, row metrics, warnings and errors.
"""
import hashlib
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from ..config.settings import Settings, get_settings
from ..db.models import HomeTemplate, Upgrade
from ..engine.pricing_engine import margin_percent

logger = logging.getLogger(__name__)

# Sheet header → upgrades column
SELECTION_COLUMNS = {
    'Parent Selection': 'parent_selection',
    'Choice Title': 'choice_title',
    'Category': 'category',
    'Location': 'location',
    'Builder Cost': 'builder_cost',
    'Client Price': 'client_price',
    'Margin': 'margin',
}
REQUIRED_COLUMNS = ('Parent Selection', 'Choice Title', 'Category')

DEFAULT_TEMPLATES = [
    {
        "name": "Ravello", "base_price": 630990, "base_cost": 500000,
        "beds": "4 Beds", "baths": "3 Baths", "garage": "2 Car Garage", "sqft": 2184,
        "image_url": "/assets/Ravello.webp",
    },
    {
        "name": "Sorrento", "base_price": 614990, "base_cost": 485000,
        "beds": "2 Beds", "baths": "2 Baths", "garage": "2 Car Garage", "sqft": 2002,
        "image_url": "/assets/Sorrento.webp",
    },
    {
        "name": "Verona", "base_price": 609990, "base_cost": 475000,
        "beds": "2 Beds", "baths": "2 Baths", "garage": "2 Car Garage", "sqft": 1987,
        "image_url": "/assets/Verona.webp",
    },
]


def get_file_hash(path: Path) -> str:
    """Get SHA256 hash of a file."""
    if not path.exists():
        return ""
    with open(path, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()[:12]


def _clean_text(value) -> Optional[str]:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def read_selection_sheet(path: Path) -> tuple[list[dict], dict]:
    """
    Read a selection workbook into upgrade rows.

    Header whitespace is ignored (sheets often carry " Builder Cost ").
    Rows without a choice title or parent selection are rejected.

    Returns (rows, stats) where stats has rows_read, rows_rejected and
    derived_margins.
    """
    df = pd.read_excel(path, sheet_name=0)
    df.columns = [str(c).strip() for c in df.columns]

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"{path.name} is missing column(s): {', '.join(missing)}")

    for column in ('Builder Cost', 'Client Price', 'Margin'):
        if column in df.columns:
            df[column] = pd.to_numeric(df[column], errors='coerce')
        else:
            df[column] = float('nan')
    if 'Location' not in df.columns:
        df['Location'] = None

    rows = []
    rejected = 0
    derived = 0
    for index, record in df.iterrows():
        choice_title = _clean_text(record['Choice Title'])
        parent_selection = _clean_text(record['Parent Selection'])
        category = _clean_text(record['Category'])
        if not choice_title or not parent_selection or not category:
            logger.warning("%s row %s rejected: missing title, parent selection or category", path.name, index + 2)
            rejected += 1
            continue

        builder_cost = 0.0 if pd.isna(record['Builder Cost']) else float(record['Builder Cost'])
        client_price = 0.0 if pd.isna(record['Client Price']) else float(record['Client Price'])
        if pd.isna(record['Margin']):
            margin = margin_percent(client_price, builder_cost)
            derived += 1
        else:
            margin = float(record['Margin'])

        rows.append({
            'parent_selection': parent_selection,
            'choice_title': choice_title,
            'category': category,
            'location': _clean_text(record['Location']),
            'builder_cost': builder_cost,
            'client_price': client_price,
            'margin': margin,
        })

    stats = {"rows_read": len(df), "rows_rejected": rejected, "derived_margins": derived}
    return rows, stats


def import_template_upgrades(session: Session, template: str, path: Path, verbose: bool = False) -> dict:
    """
    Replace a template's upgrades with the rows of its selection sheet.

    Args:
        session: database session
        template: template name the upgrades belong to
        path: selection workbook
        verbose: Print progress messages

    Returns:
        Build report dictionary
    """
    report = {
        "timestamp": datetime.now().isoformat(),
        "template": template,
        "status": "pending",
        "input_files": {},
        "metrics": {},
        "warnings": [],
        "errors": [],
    }

    if not path.exists():
        msg = f"Selection sheet {path} not found."
        report["errors"].append(msg)
        report["status"] = "failed"
        logger.error(msg)
        return report

    report["input_files"]["selections"] = {"path": str(path), "hash": get_file_hash(path)}

    try:
        rows, stats = read_selection_sheet(path)
    except Exception as e:
        msg = f"Failed to read {path.name}. {e}"
        report["errors"].append(msg)
        report["status"] = "failed"
        logger.error(msg)
        return report

    report["metrics"].update(stats)
    if stats["rows_rejected"]:
        report["warnings"].append(f"{stats['rows_rejected']} row(s) rejected for missing fields")
    if stats["derived_margins"]:
        report["warnings"].append(f"{stats['derived_margins']} margin(s) derived from price and cost")

    removed = session.execute(delete(Upgrade).where(Upgrade.template == template)).rowcount
    session.add_all(Upgrade(template=template, **row) for row in rows)
    session.commit()

    report["metrics"]["upgrades_removed"] = int(removed or 0)
    report["metrics"]["upgrades_imported"] = len(rows)
    report["metrics"]["categories"] = len({row['category'] for row in rows})
    report["status"] = "success"

    logger.info("Imported %d upgrades for %s from %s", len(rows), template, path.name)
    if verbose:
        print(f"SUCCESS: {template}: {len(rows)} upgrades imported, {stats['rows_rejected']} rejected")
    return report


def import_all_selections(session: Session, settings: Optional[Settings] = None, verbose: bool = True) -> dict:
    """Import every discovered selection sheet; one report per template."""
    settings = settings or get_settings()
    sheets = settings.selection_sheets

    if not sheets:
        msg = f"No selection sheets found in {settings.selections_dir}"
        logger.warning(msg)
        if verbose:
            print(f"WARNING: {msg}")

    reports = {}
    for template, path in sheets.items():
        if verbose:
            print(f"Importing {template} from {path.name}...")
        reports[template] = import_template_upgrades(session, template, path, verbose=verbose)

    return {
        "timestamp": datetime.now().isoformat(),
        "status": "failed" if any(r["status"] != "success" for r in reports.values()) else "success",
        "templates": reports,
        "upgrades_imported": sum(r["metrics"].get("upgrades_imported", 0) for r in reports.values()),
    }


def seed_templates(session: Session) -> int:
    """Insert the default home templates into an empty database."""
    if session.scalar(select(func.count()).select_from(HomeTemplate)):
        return 0
    session.add_all(HomeTemplate(**data) for data in DEFAULT_TEMPLATES)
    session.commit()
    logger.info("Seeded %d default templates", len(DEFAULT_TEMPLATES))
    return len(DEFAULT_TEMPLATES)
