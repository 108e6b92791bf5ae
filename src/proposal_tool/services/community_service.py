"""
Community Service - communities and the lots offered in them.
"""
import logging
import re

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import Community, Lot
from .errors import NotFoundError, reject_nulls

logger = logging.getLogger(__name__)

COMMUNITY_FIELDS = ('name', 'slug', 'location', 'is_active')
LOT_FIELDS = ('lot_number', 'address', 'premium', 'is_available')


def slugify(name: str) -> str:
    """'Heritage Hills' → 'heritage-hills'."""
    return re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-')


class CommunityService:
    """Service for managing communities and lots."""

    def __init__(self, session: Session):
        self.session = session

    def list_communities(self, include_inactive: bool = False) -> list[Community]:
        query = select(Community).order_by(Community.name)
        if not include_inactive:
            query = query.where(Community.is_active == True)  # noqa: E712
        return list(self.session.scalars(query))

    def get_community(self, community_id: int) -> Community:
        community = self.session.get(Community, community_id)
        if community is None:
            raise NotFoundError("Community", community_id)
        return community

    def get_community_by_slug(self, slug: str) -> Community:
        community = self.session.scalars(select(Community).where(Community.slug == slug)).first()
        if community is None:
            raise NotFoundError("Community", slug)
        return community

    def create_community(self, data: dict) -> Community:
        values = {k: v for k, v in data.items() if k in COMMUNITY_FIELDS and v is not None}
        values['slug'] = values.get('slug') or slugify(values['name'])
        if not values['slug']:
            raise ValueError("Community slug cannot be empty")
        if self._slug_taken(values['slug']):
            raise ValueError(f"Community slug '{values['slug']}' already exists")

        community = Community(**values)
        self.session.add(community)
        self.session.commit()
        logger.info("Created community %s", community.slug)
        return community

    def update_community(self, community_id: int, updates: dict) -> Community:
        community = self.get_community(community_id)
        reject_nulls(updates)
        new_slug = updates.get('slug')
        if new_slug and new_slug != community.slug and self._slug_taken(new_slug):
            raise ValueError(f"Community slug '{new_slug}' already exists")

        for key, value in updates.items():
            if key in COMMUNITY_FIELDS:
                setattr(community, key, value)
        self.session.commit()
        return community

    def list_lots(self, slug: str) -> list[Lot]:
        community = self.get_community_by_slug(slug)
        query = select(Lot).where(Lot.community_id == community.id).order_by(Lot.lot_number)
        return list(self.session.scalars(query))

    def create_lot(self, slug: str, data: dict) -> Lot:
        community = self.get_community_by_slug(slug)
        lot = Lot(**{k: v for k, v in data.items() if k in LOT_FIELDS and v is not None})
        community.lots.append(lot)
        self.session.commit()
        return lot

    def _slug_taken(self, slug: str) -> bool:
        return self.session.scalars(select(Community.id).where(Community.slug == slug)).first() is not None
