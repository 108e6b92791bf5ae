"""
Templates API - FastAPI router for home templates.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict

from ..services.catalog_service import CatalogService
from .deps import get_catalog_service, http_error

router = APIRouter(prefix="/api/templates", tags=["templates"])


class TemplateCreate(BaseModel):
    """Request model for creating a template."""
    name: str
    base_price: float
    base_cost: float = 0.0
    beds: str = ""
    baths: str = ""
    garage: str = ""
    sqft: int = 0
    image_url: str = ""


class TemplateUpdate(BaseModel):
    """Request model for updating a template."""
    name: Optional[str] = None
    base_price: Optional[float] = None
    base_cost: Optional[float] = None
    beds: Optional[str] = None
    baths: Optional[str] = None
    garage: Optional[str] = None
    sqft: Optional[int] = None
    image_url: Optional[str] = None


class TemplateResponse(BaseModel):
    """Response model for a template."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    base_price: float
    base_cost: float
    beds: Optional[str]
    baths: Optional[str]
    garage: Optional[str]
    sqft: Optional[int]
    image_url: Optional[str]


@router.get("", response_model=list[TemplateResponse])
def list_templates(service: CatalogService = Depends(get_catalog_service)):
    """List all home templates."""
    return service.list_templates()


@router.get("/{template_id}", response_model=TemplateResponse)
def get_template(template_id: int, service: CatalogService = Depends(get_catalog_service)):
    try:
        return service.get_template(template_id)
    except ValueError as e:
        raise http_error(e)


@router.post("", response_model=TemplateResponse, status_code=201)
def create_template(data: TemplateCreate, service: CatalogService = Depends(get_catalog_service)):
    """Create a new home template."""
    try:
        return service.create_template(data.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.patch("/{template_id}", response_model=TemplateResponse)
def update_template(template_id: int, updates: TemplateUpdate,
                    service: CatalogService = Depends(get_catalog_service)):
    """Update only the fields provided in the request body."""
    try:
        return service.update_template(template_id, updates.model_dump(exclude_unset=True))
    except ValueError as e:
        raise http_error(e)


@router.delete("/{template_id}", status_code=204)
def delete_template(template_id: int, service: CatalogService = Depends(get_catalog_service)):
    try:
        service.delete_template(template_id)
    except ValueError as e:
        raise http_error(e)
    return Response(status_code=204)
