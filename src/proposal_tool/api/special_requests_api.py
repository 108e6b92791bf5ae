"""
Special Requests API - ad hoc line items attached to a proposal.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict

from ..services.proposal_service import ProposalService
from .deps import get_proposal_service, http_error

router = APIRouter(tags=["special-requests"])


class SpecialRequestCreate(BaseModel):
    proposal_id: int
    description: str
    builder_cost: float = 0.0
    client_price: float = 0.0


class SpecialRequestUpdate(BaseModel):
    description: Optional[str] = None
    builder_cost: Optional[float] = None
    client_price: Optional[float] = None


class SpecialRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    proposal_id: int
    description: str
    builder_cost: float
    client_price: float


@router.get("/api/proposals/{proposal_id}/special-requests", response_model=list[SpecialRequestResponse])
def list_special_requests(proposal_id: int, service: ProposalService = Depends(get_proposal_service)):
    try:
        return service.list_special_requests(proposal_id)
    except ValueError as e:
        raise http_error(e)


@router.post("/api/special-requests", response_model=SpecialRequestResponse, status_code=201)
def create_special_request(data: SpecialRequestCreate, service: ProposalService = Depends(get_proposal_service)):
    """Add a special request; the proposal total is recomputed."""
    try:
        return service.create_special_request(data.model_dump())
    except ValueError as e:
        raise http_error(e)


@router.patch("/api/special-requests/{request_id}", response_model=SpecialRequestResponse)
def update_special_request(request_id: int, updates: SpecialRequestUpdate,
                           service: ProposalService = Depends(get_proposal_service)):
    try:
        return service.update_special_request(request_id, updates.model_dump(exclude_unset=True))
    except ValueError as e:
        raise http_error(e)


@router.delete("/api/special-requests/{request_id}", status_code=204)
def delete_special_request(request_id: int, service: ProposalService = Depends(get_proposal_service)):
    try:
        service.delete_special_request(request_id)
    except ValueError as e:
        raise http_error(e)
    return Response(status_code=204)
