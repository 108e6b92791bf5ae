"""
Shared API dependencies - one service per request, bound to the request's session.
"""
from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from ..db.database import get_session
from ..engine.pricing_engine import PricingEngine
from ..services.catalog_service import CatalogService
from ..services.community_service import CommunityService
from ..services.errors import NotFoundError
from ..services.proposal_service import ProposalService

# The engine is stateless; one instance serves every request
engine = PricingEngine()


def get_catalog_service(session: Session = Depends(get_session)) -> CatalogService:
    return CatalogService(session)


def get_proposal_service(session: Session = Depends(get_session)) -> ProposalService:
    return ProposalService(session, engine)


def get_community_service(session: Session = Depends(get_session)) -> CommunityService:
    return CommunityService(session)


def http_error(e: ValueError) -> HTTPException:
    """Map a service error to its HTTP status: missing → 404, invalid → 400."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))
