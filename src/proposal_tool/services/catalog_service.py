"""
Catalog Service - CRUD for home templates and their upgrade options.
"""
import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from ..db.models import HomeTemplate, Upgrade
from ..engine.grouping import GroupedUpgrades, group_upgrades
from ..engine.models import Upgrade as UpgradeRecord
from ..engine.pricing_engine import margin_percent
from .errors import NotFoundError, reject_nulls

logger = logging.getLogger(__name__)

TEMPLATE_FIELDS = ('name', 'base_price', 'base_cost', 'beds', 'baths', 'garage', 'sqft', 'image_url')
UPGRADE_FIELDS = (
    'template', 'category', 'location', 'parent_selection', 'choice_title',
    'builder_cost', 'client_price', 'margin',
)


def to_record(upgrade: Upgrade) -> UpgradeRecord:
    """Convert an ORM row into the engine's upgrade record."""
    return UpgradeRecord.from_record(upgrade)


class CatalogService:
    """Service for managing home templates and upgrades."""

    def __init__(self, session: Session):
        self.session = session

    # Templates

    def list_templates(self) -> list[HomeTemplate]:
        return list(self.session.scalars(select(HomeTemplate).order_by(HomeTemplate.id)))

    def get_template(self, template_id: int) -> HomeTemplate:
        template = self.session.get(HomeTemplate, template_id)
        if template is None:
            raise NotFoundError("Template", template_id)
        return template

    def find_template(self, name: str) -> Optional[HomeTemplate]:
        """Look up a template by name; None when it does not exist."""
        return self.session.scalars(select(HomeTemplate).where(HomeTemplate.name == name)).first()

    def create_template(self, data: dict) -> HomeTemplate:
        if self.find_template(data['name']):
            raise ValueError(f"Template '{data['name']}' already exists")

        template = HomeTemplate(**{k: v for k, v in data.items() if k in TEMPLATE_FIELDS})
        self.session.add(template)
        self.session.commit()
        logger.info("Created template %s (%s)", template.name, template.id)
        return template

    def update_template(self, template_id: int, updates: dict) -> HomeTemplate:
        template = self.get_template(template_id)
        reject_nulls(updates)
        new_name = updates.get('name')
        if new_name and new_name != template.name and self.find_template(new_name):
            raise ValueError(f"Template '{new_name}' already exists")

        for key, value in updates.items():
            if key in TEMPLATE_FIELDS:
                setattr(template, key, value)
        self.session.commit()
        return template

    def delete_template(self, template_id: int) -> bool:
        template = self.get_template(template_id)
        self.session.delete(template)
        self.session.commit()
        logger.info("Deleted template %s", template_id)
        return True

    # Upgrades

    def list_upgrades(self, template: Optional[str] = None) -> list[Upgrade]:
        """
        List upgrades, optionally for one template.

        Upgrades without a template are offered on every plan.
        """
        query = select(Upgrade).order_by(Upgrade.id)
        if template:
            query = query.where(or_(Upgrade.template == template, Upgrade.template.is_(None)))
        return list(self.session.scalars(query))

    def list_upgrades_by_category(self, category: str) -> list[Upgrade]:
        query = select(Upgrade).where(Upgrade.category == category).order_by(Upgrade.id)
        return list(self.session.scalars(query))

    def get_upgrade(self, upgrade_id: int) -> Upgrade:
        upgrade = self.session.get(Upgrade, upgrade_id)
        if upgrade is None:
            raise NotFoundError("Upgrade", upgrade_id)
        return upgrade

    def create_upgrade(self, data: dict) -> Upgrade:
        values = {k: v for k, v in data.items() if k in UPGRADE_FIELDS}
        if values.get('margin') is None:
            values['margin'] = margin_percent(values.get('client_price') or 0, values.get('builder_cost') or 0)

        upgrade = Upgrade(**values)
        self.session.add(upgrade)
        self.session.commit()
        return upgrade

    def update_upgrade(self, upgrade_id: int, updates: dict) -> Upgrade:
        upgrade = self.get_upgrade(upgrade_id)
        reject_nulls(updates, nullable=('template', 'location', 'parent_selection'))
        for key, value in updates.items():
            if key in UPGRADE_FIELDS:
                setattr(upgrade, key, value)

        # Keep margin in step with price/cost unless it was set explicitly
        if 'margin' not in updates and ({'client_price', 'builder_cost'} & updates.keys()):
            upgrade.margin = margin_percent(upgrade.client_price, upgrade.builder_cost)
        self.session.commit()
        return upgrade

    def delete_upgrade(self, upgrade_id: int) -> bool:
        upgrade = self.get_upgrade(upgrade_id)
        self.session.delete(upgrade)
        self.session.commit()
        return True

    def upgrade_records(self, template: Optional[str] = None) -> list[UpgradeRecord]:
        return [to_record(u) for u in self.list_upgrades(template)]

    def grouped_upgrades(self, template: Optional[str] = None) -> GroupedUpgrades:
        return group_upgrades(self.upgrade_records(template))
