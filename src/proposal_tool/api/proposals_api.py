"""
Proposals API - FastAPI router for proposals, selections and exports.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict

from ..export.document import export_filename
from ..export.excel_export import XLSX_MIME, build_workbook
from ..export.pdf_export import PDF_MIME, build_pdf
from ..services.proposal_service import ProposalService
from .deps import get_proposal_service, http_error
from .pricing_api import summary_payload
from .special_requests_api import SpecialRequestResponse

router = APIRouter(prefix="/api/proposals", tags=["proposals"])


class ProposalCreate(BaseModel):
    """Request model for creating a proposal. The date defaults to today."""
    todays_date: Optional[str] = None
    buyer_last_name: str
    community: str
    lot_number: str
    lot_address: str
    house_plan: str
    base_price: float
    lot_premium: float = 0.0
    sales_incentive: float = 0.0
    sales_incentive_enabled: bool = False
    design_studio_allowance: float = 0.0
    selected_upgrades: list[int] = []


class ProposalUpdate(BaseModel):
    """Request model for updating a proposal."""
    todays_date: Optional[str] = None
    buyer_last_name: Optional[str] = None
    community: Optional[str] = None
    lot_number: Optional[str] = None
    lot_address: Optional[str] = None
    house_plan: Optional[str] = None
    base_price: Optional[float] = None
    lot_premium: Optional[float] = None
    sales_incentive: Optional[float] = None
    sales_incentive_enabled: Optional[bool] = None
    design_studio_allowance: Optional[float] = None
    selected_upgrades: Optional[list[int]] = None


class ProposalResponse(BaseModel):
    """Response model for a proposal."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    todays_date: str
    buyer_last_name: str
    community: str
    lot_number: str
    lot_address: str
    house_plan: str
    base_price: float
    lot_premium: float
    sales_incentive: float
    sales_incentive_enabled: bool
    design_studio_allowance: float
    selected_upgrades: list[int]
    total_price: float
    archived: bool
    special_requests: list[SpecialRequestResponse] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ToggleRequest(BaseModel):
    upgrade_id: int


# Endpoints

@router.get("", response_model=list[ProposalResponse])
def list_proposals(service: ProposalService = Depends(get_proposal_service)):
    """Active proposals, newest first."""
    return service.list_proposals(archived=False)


@router.get("/archived", response_model=list[ProposalResponse])
def list_archived_proposals(service: ProposalService = Depends(get_proposal_service)):
    return service.list_proposals(archived=True)


@router.get("/{proposal_id}", response_model=ProposalResponse)
def get_proposal(proposal_id: int, service: ProposalService = Depends(get_proposal_service)):
    try:
        return service.get_proposal(proposal_id)
    except ValueError as e:
        raise http_error(e)


@router.post("", response_model=ProposalResponse, status_code=201)
def create_proposal(data: ProposalCreate, service: ProposalService = Depends(get_proposal_service)):
    try:
        return service.create_proposal(data.model_dump())
    except ValueError as e:
        raise http_error(e)


@router.patch("/{proposal_id}", response_model=ProposalResponse)
def update_proposal(proposal_id: int, updates: ProposalUpdate,
                    service: ProposalService = Depends(get_proposal_service)):
    """Update only the fields provided; the total is recomputed."""
    try:
        return service.update_proposal(proposal_id, updates.model_dump(exclude_unset=True))
    except ValueError as e:
        raise http_error(e)


@router.delete("/{proposal_id}", status_code=204)
def delete_proposal(proposal_id: int, service: ProposalService = Depends(get_proposal_service)):
    try:
        service.delete_proposal(proposal_id)
    except ValueError as e:
        raise http_error(e)
    return Response(status_code=204)


@router.patch("/{proposal_id}/archive", response_model=ProposalResponse)
def archive_proposal(proposal_id: int, service: ProposalService = Depends(get_proposal_service)):
    try:
        return service.archive_proposal(proposal_id)
    except ValueError as e:
        raise http_error(e)


@router.patch("/{proposal_id}/unarchive", response_model=ProposalResponse)
def unarchive_proposal(proposal_id: int, service: ProposalService = Depends(get_proposal_service)):
    try:
        return service.unarchive_proposal(proposal_id)
    except ValueError as e:
        raise http_error(e)


@router.post("/{proposal_id}/duplicate", response_model=ProposalResponse, status_code=201)
def duplicate_proposal(proposal_id: int, service: ProposalService = Depends(get_proposal_service)):
    """Copy a proposal and its special requests."""
    try:
        return service.duplicate_proposal(proposal_id)
    except ValueError as e:
        raise http_error(e)


@router.post("/{proposal_id}/selections/toggle", response_model=ProposalResponse)
def toggle_selection(proposal_id: int, request: ToggleRequest,
                     service: ProposalService = Depends(get_proposal_service)):
    """Select an upgrade (replacing its group siblings) or deselect it."""
    try:
        return service.toggle_upgrade(proposal_id, request.upgrade_id)
    except ValueError as e:
        raise http_error(e)


@router.get("/{proposal_id}/summary")
def get_summary(proposal_id: int, show_costs: bool = False,
                service: ProposalService = Depends(get_proposal_service)):
    try:
        summary = service.price_proposal(proposal_id, show_costs=show_costs)
    except ValueError as e:
        raise http_error(e)
    return summary_payload(summary)


@router.get("/{proposal_id}/export/xlsx")
def export_xlsx(proposal_id: int, show_costs: bool = False,
                service: ProposalService = Depends(get_proposal_service)):
    try:
        proposal = service.get_proposal(proposal_id)
        summary = service.price_proposal(proposal_id, show_costs=show_costs)
    except ValueError as e:
        raise http_error(e)
    return Response(
        content=build_workbook(proposal, summary),
        media_type=XLSX_MIME,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(proposal, "xlsx")}"'},
    )


@router.get("/{proposal_id}/export/pdf")
def export_pdf(proposal_id: int, show_costs: bool = False,
               service: ProposalService = Depends(get_proposal_service)):
    try:
        proposal = service.get_proposal(proposal_id)
        summary = service.price_proposal(proposal_id, show_costs=show_costs)
    except ValueError as e:
        raise http_error(e)
    return Response(
        content=build_pdf(proposal, summary),
        media_type=PDF_MIME,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(proposal, "pdf")}"'},
    )
