"""
Pricing Engine - proposal subtotal, total and margin aggregation.

Resolution order:
1. Base subtotal: base price + lot premium (+ sales incentive when enabled)
2. Selections subtotal: design studio allowance + selected upgrades + special requests
3. Grand total: base subtotal + selections subtotal
4. Cost view: cost totals and margins, stripped unless requested

Every step is recorded in the summary trace.
"""
from typing import Iterable

from .grouping import location_label, parent_label, sort_upgrades
from .models import LineItem, PricingRequest, PricingSummary, SpecialRequestLine, Upgrade


def margin(price: float, cost: float) -> float:
    """Margin as a fraction of price; 0 when there is no price."""
    if not price:
        return 0.0
    return (price - cost) / price


def margin_percent(price: float, cost: float) -> float:
    """Margin expressed as a percentage, rounded for display and storage."""
    return round(margin(price, cost) * 100, 2)


def base_subtotal(base_price: float, lot_premium: float = 0.0,
                  sales_incentive: float = 0.0, sales_incentive_enabled: bool = False) -> float:
    total = base_price + lot_premium
    if sales_incentive_enabled:
        total += sales_incentive
    return total


def selections_subtotal(design_studio_allowance: float = 0.0,
                        upgrades: Iterable[Upgrade] = (),
                        special_requests: Iterable[SpecialRequestLine] = ()) -> float:
    return (
        design_studio_allowance
        + sum(u.client_price for u in upgrades)
        + sum(sr.client_price for sr in special_requests)
    )


def grand_total(base: float, selections: float) -> float:
    return base + selections


class PricingEngine:
    """
    Prices a proposal from its base figures and current selections.

    The engine holds no state between calls; the same request always
    produces the same summary.
    """

    def calculate(self, request: PricingRequest) -> PricingSummary:
        """
        Calculate a proposal summary with full traceability.

        Args:
            request: PricingRequest with base figures, selected upgrades
                and special requests

        Returns:
            PricingSummary with subtotals, lines, trace and warnings
        """
        upgrades = sort_upgrades(request.upgrades)
        specials = list(request.special_requests)

        base = base_subtotal(
            request.base_price,
            request.lot_premium,
            request.sales_incentive,
            request.sales_incentive_enabled,
        )
        upgrades_total = sum(u.client_price for u in upgrades)
        specials_total = sum(sr.client_price for sr in specials)
        selections = selections_subtotal(request.design_studio_allowance, upgrades, specials)

        summary = PricingSummary(
            base_price=request.base_price,
            lot_premium=request.lot_premium,
            sales_incentive=request.sales_incentive if request.sales_incentive_enabled else 0.0,
            design_studio_allowance=request.design_studio_allowance,
            upgrades_total=upgrades_total,
            special_requests_total=specials_total,
            base_subtotal=base,
            selections_subtotal=selections,
            grand_total=grand_total(base, selections),
            show_costs=request.show_costs,
        )

        summary.add_trace("Base Price", "Home template base price", f"${request.base_price:,.2f}")
        if request.lot_premium:
            summary.add_trace("Lot Premium", "Added lot premium", f"${request.lot_premium:,.2f}")
        if request.sales_incentive_enabled:
            summary.add_trace("Sales Incentive", "Applied sales incentive", f"${request.sales_incentive:,.2f}")
            if request.sales_incentive > 0:
                summary.add_warning("Sales incentive is positive and increases the price")
        elif request.sales_incentive:
            summary.add_trace("Sales Incentive", "Incentive entered but not enabled", None)
        summary.add_trace("Base Subtotal", "Base price + lot premium + incentive", f"${base:,.2f}")

        if request.design_studio_allowance:
            summary.add_trace("Design Studio", "Design studio allowance", f"${request.design_studio_allowance:,.2f}")
        summary.add_trace("Upgrades", f"{len(upgrades)} selected upgrade(s)", f"${upgrades_total:,.2f}")
        if specials:
            summary.add_trace("Special Requests", f"{len(specials)} special request(s)", f"${specials_total:,.2f}")
        summary.add_trace("Selections Subtotal", "Allowance + upgrades + special requests", f"${selections:,.2f}")
        summary.add_trace("Grand Total", "Base subtotal + selections subtotal", f"${summary.grand_total:,.2f}")

        for upgrade in upgrades:
            summary.lines.append(self._upgrade_line(upgrade, request.show_costs))
        for sr in specials:
            summary.lines.append(self._special_request_line(sr, request.show_costs))

        if request.show_costs:
            self._apply_costs(summary, request, upgrades, specials)

        return summary

    def _upgrade_line(self, upgrade: Upgrade, show_costs: bool) -> LineItem:
        line = LineItem(
            kind="upgrade",
            title=upgrade.choice_title,
            client_price=upgrade.client_price,
            category=upgrade.category,
            location=location_label(upgrade),
            parent_selection=parent_label(upgrade),
            source_id=upgrade.id,
        )
        if show_costs:
            line.builder_cost = upgrade.builder_cost
            line.margin = margin_percent(upgrade.client_price, upgrade.builder_cost)
        return line

    def _special_request_line(self, sr: SpecialRequestLine, show_costs: bool) -> LineItem:
        line = LineItem(
            kind="special_request",
            title=sr.description,
            client_price=sr.client_price,
            category="Special Requests",
            source_id=sr.id,
        )
        if show_costs:
            line.builder_cost = sr.builder_cost
            line.margin = margin_percent(sr.client_price, sr.builder_cost)
        return line

    def _apply_costs(self, summary: PricingSummary, request: PricingRequest,
                     upgrades: list[Upgrade], specials: list[SpecialRequestLine]):
        """Fill cost totals and margins for the cost view."""
        upgrades_cost = sum(u.builder_cost for u in upgrades)
        specials_cost = sum(sr.builder_cost for sr in specials)

        # Allowance is passed through to the design studio at cost
        total_cost = request.base_cost + upgrades_cost + specials_cost + request.design_studio_allowance

        summary.base_cost = request.base_cost
        summary.upgrades_cost = upgrades_cost
        summary.special_requests_cost = specials_cost
        summary.total_cost = total_cost
        summary.base_margin = margin_percent(request.base_price, request.base_cost)
        summary.upgrades_margin = margin_percent(summary.upgrades_total, upgrades_cost)
        summary.overall_margin = margin_percent(summary.grand_total, total_cost)

        summary.add_trace("Total Cost", "Base cost + upgrade costs + special request costs + allowance",
                          f"${total_cost:,.2f}")
        summary.add_trace("Overall Margin", "(total - cost) / total", f"{summary.overall_margin:.2f}%")
        if summary.overall_margin < 0:
            summary.add_warning("Proposal is priced below cost")

