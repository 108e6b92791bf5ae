"""
Centralized settings and path configuration for the proposal tool.
"""
import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def discover_selection_sheets(selections_dir: Path) -> dict[str, Path]:
    """
    Map template name → selection workbook.

    The first word of the file name names the template, e.g.
    ``Sorrento Selections_Short List.xlsx`` → ``Sorrento``.
    """
    sheets = {}
    if not selections_dir.exists():
        return sheets
    for path in sorted(selections_dir.glob('*.xlsx')):
        if path.name.startswith('~$'):
            continue
        template = path.stem.split()[0].split('_')[0]
        if template and template not in sheets:
            sheets[template] = path
    return sheets


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path

    # Storage
    database_url: str

    # Input files
    selections_dir: Path
    selection_sheets: dict[str, Path] = field(default_factory=dict)

    # Runtime
    log_level: str = "INFO"
    cors_origins: tuple = ("*",)
    cost_view_password: str = "8582"
    autosave_debounce_seconds: float = 1.5
    seed_on_startup: bool = True

    # Export header
    company_name: str = "BEECHEN & DILL HOMES"
    company_address: str = "565 Village Center Dr"
    company_city: str = "Burr Ridge, IL 60527-4516"
    company_phone: str = "Phone: (630) 920-9430"

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()

        selections_dir = Path(os.getenv(
            'PROPOSAL_TOOL_SELECTIONS_DIR', str(root / 'data' / 'selections')
        ))
        database_url = os.getenv(
            'PROPOSAL_TOOL_DATABASE_URL', f"sqlite:///{root / 'proposals.db'}"
        )
        origins = os.getenv('PROPOSAL_TOOL_CORS_ORIGINS', '*')

        return cls(
            project_root=root,
            database_url=database_url,
            selections_dir=selections_dir,
            selection_sheets=discover_selection_sheets(selections_dir),
            log_level=os.getenv('PROPOSAL_TOOL_LOG_LEVEL', 'INFO').upper(),
            cors_origins=tuple(o.strip() for o in origins.split(',') if o.strip()),
            cost_view_password=os.getenv('PROPOSAL_TOOL_COST_VIEW_PASSWORD', '8582'),
            autosave_debounce_seconds=float(os.getenv('PROPOSAL_TOOL_AUTOSAVE_SECONDS', '1.5')),
            seed_on_startup=os.getenv('PROPOSAL_TOOL_SEED', 'true').lower() == 'true',
        )


# Default settings instance
_settings: Optional[Settings] = None
_logging_configured = False


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def configure_logging(settings: Optional[Settings] = None):
    """Apply the configured log level once per process."""
    global _logging_configured
    if _logging_configured:
        return
    settings = settings or get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _logging_configured = True
