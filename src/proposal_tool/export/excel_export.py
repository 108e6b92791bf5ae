"""
Excel export - purchase order workbook for a priced proposal.

Sheet 1 "Purchase Order" mirrors the printed form: company header, buyer
block, base lines, selections grouped by category and location, special
requests and totals. Sheet 2 "Line Items" is a flat table for filtering.
"""
import io
from typing import Optional

import pandas as pd
from openpyxl.styles import Alignment, Font, PatternFill

from ..config.settings import Settings, get_settings
from ..engine.grouping import NO_LOCATION
from ..engine.models import PricingSummary
from .document import (
    PURCHASE_ORDER_TITLE, base_rows, cost_rows, grouped_lines, header_rows, totals_rows,
)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CURRENCY_FORMAT = '"$"#,##0'

DARK_BLUE = "FF366092"
BLUE = "FF4472C4"
LIGHT_BLUE = "FFE7F3FF"
LIGHT_GRAY = "FFF2F2F2"
LOCATION_GRAY = "FFE9ECEF"
STRIPE = "FFF8F9FA"


def _fill(color: str) -> PatternFill:
    return PatternFill(fill_type="solid", fgColor=color)


def _band(ws, row: int, text: str, color: str, font: Font, last_col: int = 9):
    """Merged full-width row with a background color."""
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=last_col)
    ws.cell(row=row, column=1, value=text)
    for col in range(1, last_col + 1):
        cell = ws.cell(row=row, column=col)
        cell.font = font
        cell.fill = _fill(color)
        cell.alignment = Alignment(horizontal="left", vertical="center")


def _price_cell(ws, row: int, col: int, value: float, fill: Optional[PatternFill] = None):
    cell = ws.cell(row=row, column=col, value=round(value, 2))
    cell.number_format = CURRENCY_FORMAT
    cell.alignment = Alignment(horizontal="right", vertical="center")
    if fill is not None:
        cell.fill = fill
    return cell


def line_items_frame(summary: PricingSummary) -> pd.DataFrame:
    """Flat table of every priced line."""
    records = []
    for line in summary.lines:
        record = {
            'Category': line.category or '',
            'Location': line.location or '',
            'Parent Selection': line.parent_selection or '',
            'Choice Title': line.title,
            'Client Price': line.client_price,
        }
        if summary.show_costs:
            record['Builder Cost'] = line.builder_cost
            record['Margin %'] = line.margin
        records.append(record)

    columns = ['Category', 'Location', 'Parent Selection', 'Choice Title', 'Client Price']
    if summary.show_costs:
        columns += ['Builder Cost', 'Margin %']
    return pd.DataFrame(records, columns=columns)


def _write_purchase_order(ws, proposal, summary: PricingSummary, settings: Settings):
    for col, width in zip("ABCDEFGHI", (12, 12, 8, 12, 18, 18, 16, 12, 15)):
        ws.column_dimensions[col].width = width

    ws.merge_cells("A1:I1")
    title = ws["A1"]
    title.value = PURCHASE_ORDER_TITLE
    title.font = Font(bold=True, size=16, color="FFFFFFFF")
    title.fill = _fill(DARK_BLUE)
    title.alignment = Alignment(horizontal="center", vertical="center")
    ws.row_dimensions[1].height = 25

    ws.merge_cells("A3:I3")
    company = ws["A3"]
    company.value = f"• {settings.company_name} •"
    company.font = Font(bold=True, size=14, color=DARK_BLUE)
    company.fill = _fill(LIGHT_BLUE)
    company.alignment = Alignment(horizontal="center", vertical="center")

    ws["A5"] = settings.company_address
    ws["D5"] = settings.company_city
    ws["H5"] = settings.company_phone

    row = 7
    for label, value in header_rows(proposal):
        label_cell = ws.cell(row=row, column=2, value=label)
        label_cell.font = Font(bold=True)
        label_cell.fill = _fill(LIGHT_GRAY)
        ws.merge_cells(start_row=row, start_column=5, end_row=row, end_column=9)
        ws.cell(row=row, column=5, value=value)
        row += 1

    row += 1
    for label, amount in base_rows(summary):
        ws.cell(row=row, column=1, value=label)
        _price_cell(ws, row, 9, amount)
        row += 1

    row += 1
    show_costs = summary.show_costs
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=4)
    ws.cell(row=row, column=1, value="Option")
    if show_costs:
        ws.merge_cells(start_row=row, start_column=5, end_row=row, end_column=6)
        ws.cell(row=row, column=7, value="Builder Cost")
        ws.cell(row=row, column=8, value="Margin")
    else:
        ws.merge_cells(start_row=row, start_column=5, end_row=row, end_column=8)
    ws.cell(row=row, column=5, value="Description")
    ws.cell(row=row, column=9, value="Subtotal")
    for col in range(1, 10):
        cell = ws.cell(row=row, column=col)
        cell.font = Font(bold=True, color="FFFFFFFF")
        cell.fill = _fill(BLUE)
        cell.alignment = Alignment(horizontal="center", vertical="center")
    row += 1

    white_bold = Font(bold=True, color="FFFFFFFF")
    for category, locations in grouped_lines(summary).items():
        _band(ws, row, category, BLUE, white_bold)
        row += 1
        for location, lines in locations.items():
            if location != NO_LOCATION:
                _band(ws, row, location, LOCATION_GRAY, Font(bold=True, italic=True))
                row += 1
            for index, line in enumerate(lines):
                row = _write_line(ws, row, line.title, line.parent_selection, line, index, show_costs)

    specials = summary.special_request_lines
    if specials:
        _band(ws, row, "Special Requests", BLUE, white_bold)
        row += 1
        for index, line in enumerate(specials):
            row = _write_line(ws, row, line.title, "", line, index, show_costs)

    row += 1
    for label, amount in totals_rows(summary):
        ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=8)
        ws.cell(row=row, column=1, value=label)
        _price_cell(ws, row, 9, amount)
        if label == "Grand Total":
            for col in range(1, 10):
                cell = ws.cell(row=row, column=col)
                cell.font = white_bold
                cell.fill = _fill(DARK_BLUE)
        else:
            ws.cell(row=row, column=1).font = Font(bold=True)
        row += 1

    cost_block = cost_rows(summary)
    if cost_block:
        row += 1
        for label, text in cost_block:
            ws.cell(row=row, column=1, value=label).font = Font(bold=True)
            ws.cell(row=row, column=9, value=text).alignment = Alignment(horizontal="right")
            row += 1


def _write_line(ws, row, title, description, line, index, show_costs) -> int:
    fill = _fill(STRIPE if index % 2 == 0 else "FFFFFFFF")
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=4)
    ws.cell(row=row, column=1, value=title).fill = fill
    if show_costs:
        ws.merge_cells(start_row=row, start_column=5, end_row=row, end_column=6)
        _price_cell(ws, row, 7, line.builder_cost or 0.0, fill)
        margin_cell = ws.cell(row=row, column=8, value=f"{(line.margin or 0.0):.2f}%")
        margin_cell.fill = fill
    else:
        ws.merge_cells(start_row=row, start_column=5, end_row=row, end_column=8)
    ws.cell(row=row, column=5, value=description or "").fill = fill
    _price_cell(ws, row, 9, line.client_price, fill)
    return row + 1


def build_workbook(proposal, summary: PricingSummary, settings: Optional[Settings] = None) -> bytes:
    """
    Render a proposal as an .xlsx workbook.

    Args:
        proposal: object exposing the proposal header fields
        summary: PricingSummary from the pricing engine
        settings: Optional settings override (company header)

    Returns:
        Workbook bytes
    """
    settings = settings or get_settings()
    output = io.BytesIO()

    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        ws = writer.book.create_sheet("Purchase Order", 0)
        _write_purchase_order(ws, proposal, summary, settings)
        line_items_frame(summary).to_excel(writer, sheet_name="Line Items", index=False)

    return output.getvalue()
