"""
Shared layout for proposal exports.

Both the spreadsheet and the PDF walk the same header rows, grouped
selection lines and totals block.
"""
import re
from datetime import date

from ..engine.grouping import NO_LOCATION
from ..engine.models import LineItem, PricingSummary

PURCHASE_ORDER_TITLE = "PURCHASE ORDER"


def header_rows(proposal) -> list[tuple[str, str]]:
    return [
        ("Date", proposal.todays_date or ""),
        ("Buyer's Last Name", proposal.buyer_last_name or ""),
        ("Community", proposal.community or ""),
        ("Lot Number", proposal.lot_number or ""),
        ("Lot Address", proposal.lot_address or ""),
        ("House Plan", proposal.house_plan or ""),
    ]


def base_rows(summary: PricingSummary) -> list[tuple[str, float]]:
    """Lines above the selections table; zero premium/incentive rows are left out."""
    rows = [("Base Price", summary.base_price)]
    if summary.lot_premium:
        rows.append(("Lot Premium", summary.lot_premium))
    if summary.sales_incentive:
        rows.append(("Sales Incentive", summary.sales_incentive))
    if summary.design_studio_allowance:
        rows.append(("Design Studio Allowance", summary.design_studio_allowance))
    return rows


def grouped_lines(summary: PricingSummary) -> dict[str, dict[str, list[LineItem]]]:
    """Selected upgrade lines by category → location, in engine order."""
    grouped: dict[str, dict[str, list[LineItem]]] = {}
    for line in summary.upgrade_lines:
        grouped.setdefault(line.category or "", {}).setdefault(line.location or NO_LOCATION, []).append(line)
    return grouped


def totals_rows(summary: PricingSummary) -> list[tuple[str, float]]:
    return [
        ("Base Subtotal", summary.base_subtotal),
        ("Selections Subtotal", summary.selections_subtotal),
        ("Grand Total", summary.grand_total),
    ]


def cost_rows(summary: PricingSummary) -> list[tuple[str, str]]:
    """Cost view block; empty when costs are hidden."""
    if not summary.show_costs:
        return []
    return [
        ("Base Cost", f"${summary.base_cost:,.2f}"),
        ("Base Margin", f"{summary.base_margin:.2f}%"),
        ("Upgrades Builder Cost", f"${summary.upgrades_cost:,.2f}"),
        ("Upgrades Margin", f"{summary.upgrades_margin:.2f}%"),
        ("Special Requests Cost", f"${summary.special_requests_cost:,.2f}"),
        ("Total Cost", f"${summary.total_cost:,.2f}"),
        ("Overall Margin", f"{summary.overall_margin:.2f}%"),
    ]


def export_filename(proposal, extension: str) -> str:
    """PO_<plan>_<buyer>_<yyyy-mm-dd>.<ext> with filesystem-safe parts."""
    def safe(text):
        return re.sub(r'[^A-Za-z0-9-]+', '_', text or '').strip('_')

    buyer = safe(proposal.buyer_last_name) or "Customer"
    plan = safe(proposal.house_plan) or "Plan"
    return f"PO_{plan}_{buyer}_{date.today().isoformat()}.{extension}"
