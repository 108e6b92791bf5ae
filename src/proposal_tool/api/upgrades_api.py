"""
Upgrades API - FastAPI router for upgrade options.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Response
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ConfigDict

from ..services.catalog_service import CatalogService
from .deps import get_catalog_service, http_error

router = APIRouter(prefix="/api/upgrades", tags=["upgrades"])


class UpgradeCreate(BaseModel):
    """Request model for creating an upgrade. Margin is derived when omitted."""
    template: Optional[str] = None
    category: str
    location: Optional[str] = None
    parent_selection: Optional[str] = None
    choice_title: str
    builder_cost: float = 0.0
    client_price: float = 0.0
    margin: Optional[float] = None


class UpgradeUpdate(BaseModel):
    """Request model for updating an upgrade."""
    template: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    parent_selection: Optional[str] = None
    choice_title: Optional[str] = None
    builder_cost: Optional[float] = None
    client_price: Optional[float] = None
    margin: Optional[float] = None


class UpgradeResponse(BaseModel):
    """Response model for an upgrade."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    template: Optional[str]
    category: str
    location: Optional[str]
    parent_selection: Optional[str]
    choice_title: str
    builder_cost: float
    client_price: float
    margin: float


@router.get("", response_model=list[UpgradeResponse])
def list_upgrades(template: Optional[str] = None, service: CatalogService = Depends(get_catalog_service)):
    """List upgrades, optionally only those offered on one template."""
    return service.list_upgrades(template)


@router.get("/grouped")
def get_grouped_upgrades(template: Optional[str] = None,
                         service: CatalogService = Depends(get_catalog_service)):
    """Upgrades as a Category → Location → Parent Selection tree."""
    return jsonable_encoder(service.grouped_upgrades(template))


@router.get("/category/{category}", response_model=list[UpgradeResponse])
def list_upgrades_by_category(category: str, service: CatalogService = Depends(get_catalog_service)):
    return service.list_upgrades_by_category(category)


@router.get("/{upgrade_id}", response_model=UpgradeResponse)
def get_upgrade(upgrade_id: int, service: CatalogService = Depends(get_catalog_service)):
    try:
        return service.get_upgrade(upgrade_id)
    except ValueError as e:
        raise http_error(e)


@router.post("", response_model=UpgradeResponse, status_code=201)
def create_upgrade(data: UpgradeCreate, service: CatalogService = Depends(get_catalog_service)):
    try:
        return service.create_upgrade(data.model_dump())
    except ValueError as e:
        raise http_error(e)


@router.patch("/{upgrade_id}", response_model=UpgradeResponse)
def update_upgrade(upgrade_id: int, updates: UpgradeUpdate,
                   service: CatalogService = Depends(get_catalog_service)):
    try:
        return service.update_upgrade(upgrade_id, updates.model_dump(exclude_unset=True))
    except ValueError as e:
        raise http_error(e)


@router.delete("/{upgrade_id}", status_code=204)
def delete_upgrade(upgrade_id: int, service: CatalogService = Depends(get_catalog_service)):
    try:
        service.delete_upgrade(upgrade_id)
    except ValueError as e:
        raise http_error(e)
    return Response(status_code=204)
