"""
Pricing API - price an unsaved proposal body.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel

from ..engine.models import PricingSummary
from ..services.proposal_service import ProposalService
from .deps import get_proposal_service, http_error

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


class SpecialRequestInput(BaseModel):
    description: str
    builder_cost: float = 0.0
    client_price: float = 0.0


class PreviewRequest(BaseModel):
    """Request model for pricing a proposal that has not been saved."""
    house_plan: Optional[str] = None
    base_price: float = 0.0
    lot_premium: float = 0.0
    sales_incentive: float = 0.0
    sales_incentive_enabled: bool = False
    design_studio_allowance: float = 0.0
    selected_upgrades: list[int] = []
    special_requests: list[SpecialRequestInput] = []
    show_costs: bool = False


def summary_payload(summary: PricingSummary) -> dict:
    """JSON body for a pricing summary, including the readable trace."""
    payload = jsonable_encoder(summary)
    payload["trace_text"] = summary.get_trace_text()
    return payload


@router.post("/preview")
def preview(request: PreviewRequest, service: ProposalService = Depends(get_proposal_service)):
    """Compute a summary without persisting anything."""
    data = request.model_dump(exclude={"show_costs"})
    try:
        summary = service.preview(data, show_costs=request.show_costs)
    except ValueError as e:
        raise http_error(e)
    return summary_payload(summary)
