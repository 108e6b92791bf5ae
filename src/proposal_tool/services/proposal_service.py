"""
Proposal Service - CRUD for proposals and special requests, plus pricing.

Every write recomputes the stored total price from the pricing engine so
the list views never disagree with the summary.
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import Proposal, SpecialRequest, Upgrade
from ..engine.models import PricingRequest, PricingSummary, SpecialRequestLine
from ..engine.pricing_engine import PricingEngine
from ..engine.selection import normalize_selection, toggle_selection
from .catalog_service import CatalogService, to_record
from .errors import NotFoundError, reject_nulls

logger = logging.getLogger(__name__)

PROPOSAL_FIELDS = (
    'todays_date', 'buyer_last_name', 'community', 'lot_number', 'lot_address',
    'house_plan', 'base_price', 'lot_premium', 'sales_incentive',
    'sales_incentive_enabled', 'design_studio_allowance', 'selected_upgrades',
)
SPECIAL_REQUEST_FIELDS = ('description', 'builder_cost', 'client_price')


def today_str() -> str:
    """Today's date as shown on proposals (MM/DD/YYYY)."""
    return date.today().strftime('%m/%d/%Y')


class ProposalService:
    """Service for managing proposals and their special requests."""

    def __init__(self, session: Session, engine: Optional[PricingEngine] = None):
        self.session = session
        self.engine = engine or PricingEngine()
        self.catalog = CatalogService(session)

    # Proposals

    def list_proposals(self, archived: bool = False) -> list[Proposal]:
        """Active (or archived) proposals, newest first."""
        query = (
            select(Proposal)
            .where(Proposal.archived == archived)
            .order_by(Proposal.id.desc())
        )
        return list(self.session.scalars(query))

    def get_proposal(self, proposal_id: int) -> Proposal:
        proposal = self.session.get(Proposal, proposal_id)
        if proposal is None:
            raise NotFoundError("Proposal", proposal_id)
        return proposal

    def create_proposal(self, data: dict) -> Proposal:
        values = {k: v for k, v in data.items() if k in PROPOSAL_FIELDS and v is not None}
        values.setdefault('todays_date', today_str())
        values['selected_upgrades'] = self._clean_selection(
            values.get('selected_upgrades') or [], values.get('house_plan')
        )

        proposal = Proposal(**values)
        self.session.add(proposal)
        self.session.flush()
        self._refresh_total(proposal)
        self.session.commit()
        logger.info("Created proposal %s for %s", proposal.id, proposal.buyer_last_name)
        return proposal

    def update_proposal(self, proposal_id: int, updates: dict) -> Proposal:
        """
        Apply a partial update.

        Changing the house plan re-checks the kept selections against the
        upgrades offered on the new plan.
        """
        proposal = self.get_proposal(proposal_id)
        reject_nulls(updates, nullable=('selected_upgrades',))
        for key, value in updates.items():
            if key in PROPOSAL_FIELDS and key != 'selected_upgrades':
                setattr(proposal, key, value)

        if 'selected_upgrades' in updates or 'house_plan' in updates:
            selected = updates.get('selected_upgrades', proposal.selected_upgrades)
            proposal.selected_upgrades = self._clean_selection(selected or [], proposal.house_plan)

        self._refresh_total(proposal)
        self.session.commit()
        return proposal

    def delete_proposal(self, proposal_id: int) -> bool:
        proposal = self.get_proposal(proposal_id)
        self.session.delete(proposal)
        self.session.commit()
        logger.info("Deleted proposal %s", proposal_id)
        return True

    def archive_proposal(self, proposal_id: int) -> Proposal:
        return self._set_archived(proposal_id, True)

    def unarchive_proposal(self, proposal_id: int) -> Proposal:
        return self._set_archived(proposal_id, False)

    def duplicate_proposal(self, proposal_id: int) -> Proposal:
        """Copy a proposal and its special requests under a "(Copy)" buyer name."""
        original = self.get_proposal(proposal_id)

        duplicate = Proposal(**{k: getattr(original, k) for k in PROPOSAL_FIELDS})
        duplicate.selected_upgrades = list(original.selected_upgrades or [])
        duplicate.buyer_last_name = f"{original.buyer_last_name} (Copy)"
        duplicate.todays_date = today_str()
        duplicate.total_price = original.total_price
        for sr in original.special_requests:
            duplicate.special_requests.append(SpecialRequest(
                description=sr.description,
                builder_cost=sr.builder_cost,
                client_price=sr.client_price,
            ))

        self.session.add(duplicate)
        self.session.commit()
        logger.info("Duplicated proposal %s as %s", proposal_id, duplicate.id)
        return duplicate

    def toggle_upgrade(self, proposal_id: int, upgrade_id: int) -> Proposal:
        """Toggle one upgrade on a proposal with single-choice semantics."""
        proposal = self.get_proposal(proposal_id)
        catalog = self.catalog.upgrade_records(proposal.house_plan)

        selected = toggle_selection(proposal.selected_upgrades or [], upgrade_id, catalog)
        previous = [sid for sid in (proposal.selected_upgrades or []) if sid in selected]
        added = [sid for sid in selected if sid not in previous]
        proposal.selected_upgrades = previous + added

        self._refresh_total(proposal)
        self.session.commit()
        return proposal

    # Pricing

    def price_proposal(self, proposal_id: int, show_costs: bool = False) -> PricingSummary:
        proposal = self.get_proposal(proposal_id)
        return self._price(proposal, show_costs)

    def preview(self, data: dict, show_costs: bool = False) -> PricingSummary:
        """Price an unsaved proposal body."""
        special_requests = [
            SpecialRequestLine(
                description=sr.get('description', ''),
                builder_cost=float(sr.get('builder_cost') or 0),
                client_price=float(sr.get('client_price') or 0),
            )
            for sr in data.get('special_requests') or []
        ]
        selected_ids, warnings = self._normalize(data.get('selected_upgrades') or [], data.get('house_plan'))
        request, missing = self._build_request(
            house_plan=data.get('house_plan'),
            base_price=data.get('base_price') or 0,
            lot_premium=data.get('lot_premium') or 0,
            sales_incentive=data.get('sales_incentive') or 0,
            sales_incentive_enabled=bool(data.get('sales_incentive_enabled')),
            design_studio_allowance=data.get('design_studio_allowance') or 0,
            selected_ids=selected_ids,
            special_requests=special_requests,
            show_costs=show_costs,
        )
        summary = self.engine.calculate(request)
        for warning in warnings + missing:
            summary.add_warning(warning)
        return summary

    # Special requests

    def list_special_requests(self, proposal_id: int) -> list[SpecialRequest]:
        self.get_proposal(proposal_id)
        query = (
            select(SpecialRequest)
            .where(SpecialRequest.proposal_id == proposal_id)
            .order_by(SpecialRequest.id)
        )
        return list(self.session.scalars(query))

    def get_special_request(self, request_id: int) -> SpecialRequest:
        sr = self.session.get(SpecialRequest, request_id)
        if sr is None:
            raise NotFoundError("Special request", request_id)
        return sr

    def create_special_request(self, data: dict) -> SpecialRequest:
        proposal = self.get_proposal(data['proposal_id'])
        sr = SpecialRequest(**{k: v for k, v in data.items() if k in SPECIAL_REQUEST_FIELDS and v is not None})
        proposal.special_requests.append(sr)
        self.session.flush()
        self._refresh_total(proposal)
        self.session.commit()
        return sr

    def update_special_request(self, request_id: int, updates: dict) -> SpecialRequest:
        sr = self.get_special_request(request_id)
        reject_nulls(updates)
        for key, value in updates.items():
            if key in SPECIAL_REQUEST_FIELDS:
                setattr(sr, key, value)
        self.session.flush()
        self._refresh_total(sr.proposal)
        self.session.commit()
        return sr

    def delete_special_request(self, request_id: int) -> bool:
        sr = self.get_special_request(request_id)
        proposal = sr.proposal
        proposal.special_requests.remove(sr)
        self.session.flush()
        self._refresh_total(proposal)
        self.session.commit()
        return True

    # Internals

    def _set_archived(self, proposal_id: int, archived: bool) -> Proposal:
        proposal = self.get_proposal(proposal_id)
        proposal.archived = archived
        self.session.commit()
        logger.info("Proposal %s %s", proposal_id, "archived" if archived else "restored")
        return proposal

    def _normalize(self, selected_ids: list, house_plan: Optional[str]) -> tuple[list[int], list[str]]:
        """One id per selection group, limited to upgrades offered on the plan."""
        catalog = self.catalog.upgrade_records(house_plan)
        return normalize_selection([int(sid) for sid in selected_ids], catalog)

    def _clean_selection(self, selected_ids: list, house_plan: Optional[str]) -> list[int]:
        ids, warnings = self._normalize(selected_ids, house_plan)
        for warning in warnings:
            logger.warning("Selection for plan %s: %s", house_plan, warning)
        return ids

    def _build_request(self, house_plan, base_price, lot_premium, sales_incentive,
                       sales_incentive_enabled, design_studio_allowance,
                       selected_ids, special_requests, show_costs) -> tuple[PricingRequest, list[str]]:
        warnings = []

        template = self.catalog.find_template(house_plan) if house_plan else None
        base_cost = float(template.base_cost or 0) if template else 0.0
        if house_plan and template is None:
            warnings.append(f"House plan '{house_plan}' has no template; base cost unknown")

        ids = [int(sid) for sid in selected_ids]
        rows = []
        if ids:
            rows = list(self.session.scalars(select(Upgrade).where(Upgrade.id.in_(ids))))
        found = {row.id for row in rows}
        for sid in ids:
            if sid not in found:
                warnings.append(f"Selected upgrade {sid} not found")

        request = PricingRequest(
            base_price=float(base_price or 0),
            base_cost=base_cost,
            lot_premium=float(lot_premium or 0),
            sales_incentive=float(sales_incentive or 0),
            sales_incentive_enabled=bool(sales_incentive_enabled),
            design_studio_allowance=float(design_studio_allowance or 0),
            upgrades=[to_record(row) for row in rows],
            special_requests=special_requests,
            show_costs=show_costs,
        )
        return request, warnings

    def _price(self, proposal: Proposal, show_costs: bool = False) -> PricingSummary:
        special_requests = [
            SpecialRequestLine(
                id=sr.id,
                description=sr.description,
                builder_cost=float(sr.builder_cost or 0),
                client_price=float(sr.client_price or 0),
            )
            for sr in proposal.special_requests
        ]
        request, warnings = self._build_request(
            house_plan=proposal.house_plan,
            base_price=proposal.base_price,
            lot_premium=proposal.lot_premium,
            sales_incentive=proposal.sales_incentive,
            sales_incentive_enabled=proposal.sales_incentive_enabled,
            design_studio_allowance=proposal.design_studio_allowance,
            selected_ids=proposal.selected_upgrades or [],
            special_requests=special_requests,
            show_costs=show_costs,
        )
        summary = self.engine.calculate(request)
        for warning in warnings:
            summary.add_warning(warning)
        return summary

    def _refresh_total(self, proposal: Proposal):
        proposal.total_price = self._price(proposal).grand_total
