"""
Communities API - communities and their lots, addressed by slug.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from ..services.community_service import CommunityService
from .deps import get_community_service, http_error

router = APIRouter(prefix="/api/communities", tags=["communities"])


class CommunityCreate(BaseModel):
    """Request model for creating a community. The slug defaults to the slugified name."""
    name: str
    slug: Optional[str] = None
    location: str = ""
    is_active: bool = True


class CommunityUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    location: Optional[str] = None
    is_active: Optional[bool] = None


class CommunityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    location: Optional[str]
    is_active: bool


class LotCreate(BaseModel):
    lot_number: str
    address: str = ""
    premium: float = 0.0
    is_available: bool = True


class LotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    community_id: int
    lot_number: str
    address: Optional[str]
    premium: float
    is_available: bool


@router.get("", response_model=list[CommunityResponse])
def list_communities(service: CommunityService = Depends(get_community_service)):
    """Active communities only."""
    return service.list_communities()


@router.get("/{slug}", response_model=CommunityResponse)
def get_community(slug: str, service: CommunityService = Depends(get_community_service)):
    try:
        return service.get_community_by_slug(slug)
    except ValueError as e:
        raise http_error(e)


@router.post("", response_model=CommunityResponse, status_code=201)
def create_community(data: CommunityCreate, service: CommunityService = Depends(get_community_service)):
    try:
        return service.create_community(data.model_dump())
    except ValueError as e:
        raise http_error(e)


@router.patch("/{community_id}", response_model=CommunityResponse)
def update_community(community_id: int, updates: CommunityUpdate,
                     service: CommunityService = Depends(get_community_service)):
    try:
        return service.update_community(community_id, updates.model_dump(exclude_unset=True))
    except ValueError as e:
        raise http_error(e)


@router.get("/{slug}/lots", response_model=list[LotResponse])
def list_lots(slug: str, service: CommunityService = Depends(get_community_service)):
    try:
        return service.list_lots(slug)
    except ValueError as e:
        raise http_error(e)


@router.post("/{slug}/lots", response_model=LotResponse, status_code=201)
def create_lot(slug: str, data: LotCreate, service: CommunityService = Depends(get_community_service)):
    try:
        return service.create_lot(slug, data.model_dump())
    except ValueError as e:
        raise http_error(e)
