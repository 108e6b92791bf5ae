"""
PDF export - printable purchase order for a priced proposal.
"""
import io
from datetime import datetime
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..config.settings import Settings, get_settings
from ..engine.formatting import format_currency
from ..engine.grouping import NO_LOCATION
from ..engine.models import PricingSummary
from .document import PURCHASE_ORDER_TITLE, base_rows, cost_rows, grouped_lines, header_rows, totals_rows

PDF_MIME = "application/pdf"

DARK_BLUE = colors.HexColor('#366092')
BLUE = colors.HexColor('#4472C4')
LOCATION_GRAY = colors.HexColor('#E9ECEF')
STRIPE = colors.HexColor('#F8F9FA')


def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle('POTitle', parent=styles['Title'], fontSize=18, spaceAfter=4,
                              textColor=DARK_BLUE))
    styles.add(ParagraphStyle('Company', parent=styles['Heading2'], fontSize=13, alignment=1,
                              textColor=DARK_BLUE, spaceAfter=2))
    styles.add(ParagraphStyle('SmallText', parent=styles['Normal'], fontSize=8, alignment=1,
                              textColor=colors.grey))
    styles.add(ParagraphStyle('SectionHead', parent=styles['Heading3'], fontSize=11,
                              spaceBefore=12, spaceAfter=6))
    styles.add(ParagraphStyle('Cell', parent=styles['Normal'], fontSize=8, leading=10))
    return styles


def _selection_table(summary: PricingSummary, styles) -> Optional[Table]:
    show_costs = summary.show_costs
    header = ['Option', 'Description']
    if show_costs:
        header += ['Builder Cost', 'Margin']
    header.append('Subtotal')
    width = len(header)

    data = [header]
    commands = [
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('BACKGROUND', (0, 0), (-1, 0), BLUE),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('ALIGN', (-1, 0), (-1, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.25, colors.HexColor('#ccc')),
        ('TOPPADDING', (0, 0), (-1, -1), 3),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 3),
    ]

    def band(text, background, bold_color):
        row = len(data)
        data.append([text] + [''] * (width - 1))
        commands.extend([
            ('SPAN', (0, row), (-1, row)),
            ('BACKGROUND', (0, row), (-1, row), background),
            ('TEXTCOLOR', (0, row), (-1, row), bold_color),
            ('FONTNAME', (0, row), (-1, row), 'Helvetica-Bold'),
        ])

    def line_row(line, description, index):
        row = [Paragraph(escape(line.title), styles['Cell']), Paragraph(escape(description or ''), styles['Cell'])]
        if show_costs:
            row += [format_currency(line.builder_cost or 0), f"{(line.margin or 0):.2f}%"]
        row.append(format_currency(line.client_price))
        if index % 2 == 0:
            commands.append(('BACKGROUND', (0, len(data)), (-1, len(data)), STRIPE))
        data.append(row)

    for category, locations in grouped_lines(summary).items():
        band(category, BLUE, colors.white)
        for location, lines in locations.items():
            if location != NO_LOCATION:
                band(location, LOCATION_GRAY, colors.black)
            for index, line in enumerate(lines):
                line_row(line, line.parent_selection, index)

    specials = summary.special_request_lines
    if specials:
        band("Special Requests", BLUE, colors.white)
        for index, line in enumerate(specials):
            line_row(line, '', index)

    if len(data) == 1:
        return None

    col_widths = [2.6 * inch, 2.2 * inch, 1.0 * inch, 0.7 * inch, 1.0 * inch] if show_costs \
        else [3.2 * inch, 2.8 * inch, 1.2 * inch]
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle(commands))
    return table


def build_pdf(proposal, summary: PricingSummary, settings: Optional[Settings] = None) -> bytes:
    """
    Render a proposal as a PDF purchase order.

    Args:
        proposal: object exposing the proposal header fields
        summary: PricingSummary from the pricing engine
        settings: Optional settings override (company header)

    Returns:
        PDF bytes
    """
    settings = settings or get_settings()
    styles = _styles()
    buf = io.BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=letter, topMargin=0.5 * inch, bottomMargin=0.5 * inch,
                            leftMargin=0.5 * inch, rightMargin=0.5 * inch,
                            title=f"{PURCHASE_ORDER_TITLE} {proposal.buyer_last_name or ''}".strip())

    story = [
        Paragraph(PURCHASE_ORDER_TITLE, styles['POTitle']),
        Paragraph(escape(settings.company_name), styles['Company']),
        Paragraph(escape(f"{settings.company_address} • {settings.company_city} • {settings.company_phone}"),
                  styles['SmallText']),
        Paragraph(f"Generated: {datetime.now().strftime('%B %d, %Y at %I:%M %p')}", styles['SmallText']),
        Spacer(1, 12),
    ]

    info = Table([[label, str(value)] for label, value in header_rows(proposal)],
                 colWidths=[1.8 * inch, 5.2 * inch])
    info.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('BACKGROUND', (0, 0), (0, -1), colors.HexColor('#F2F2F2')),
        ('GRID', (0, 0), (-1, -1), 0.25, colors.HexColor('#ddd')),
    ]))
    story += [info, Spacer(1, 12)]

    base = Table([[label, format_currency(amount)] for label, amount in base_rows(summary)],
                 colWidths=[5.8 * inch, 1.2 * inch])
    base.setStyle(TableStyle([
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
    ]))
    story += [base]

    selections = _selection_table(summary, styles)
    if selections is not None:
        story += [Paragraph('Selections', styles['SectionHead']), selections]

    totals = Table([[label, format_currency(amount)] for label, amount in totals_rows(summary)],
                   colWidths=[5.8 * inch, 1.2 * inch])
    totals.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 9),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('BACKGROUND', (0, -1), (-1, -1), DARK_BLUE),
        ('TEXTCOLOR', (0, -1), (-1, -1), colors.white),
    ]))
    story += [Spacer(1, 12), totals]

    cost_block = cost_rows(summary)
    if cost_block:
        costs = Table(cost_block, colWidths=[5.8 * inch, 1.2 * inch])
        costs.setStyle(TableStyle([
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
            ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#555')),
        ]))
        story += [Paragraph('Cost View', styles['SectionHead']), costs]

    for warning in summary.warnings:
        story.append(Paragraph(f"<font color='#e65100'>{escape(warning)}</font>", styles['Cell']))

    doc.build(story)
    return buf.getvalue()
