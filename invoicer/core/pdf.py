import io
import logging
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from invoicer.core.formatting import format_currency
from invoicer.schemas.invoice import InvoiceDetail
from invoicer.schemas.settings import CompanySettings

logger = logging.getLogger(__name__)

class PdfRenderError(RuntimeError):
    pass

def _p(text: Optional[str], style) -> Paragraph:
    return Paragraph(escape(text or ""), style)

def _number(value: float) -> str:
    return f"{value:g}"

def _company_block(company: CompanySettings, logo_path, styles) -> List:
    block = []
    if logo_path is not None:
        block.append(Image(str(logo_path), width=60, height=60, kind="proportional"))
    block.append(_p(company.company_name, styles["CompanyName"]))
    for line in (company.address_line1, company.address_line2):
        if line:
            block.append(_p(line, styles["Small"]))
    city_line = " ".join(filter(None, [company.postal_code, company.city]))
    if city_line:
        block.append(_p(city_line, styles["Small"]))
    if company.country:
        block.append(_p(company.country, styles["Small"]))
    return block

def _client_block(invoice: InvoiceDetail, styles) -> List:
    block = [
        _p("BILL TO", styles["Label"]),
        _p(invoice.client_name, styles["ClientName"]),
    ]
    if invoice.client_address:
        block.append(_p(invoice.client_address, styles["SmallRight"]))
    city_line = " ".join(filter(None, [invoice.client_postal_code, invoice.client_city]))
    if city_line:
        block.append(_p(city_line, styles["SmallRight"]))
    if invoice.client_country:
        block.append(_p(invoice.client_country, styles["SmallRight"]))
    return block

def _styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="CompanyName", fontName="Helvetica-Bold", fontSize=16, leading=20))
    styles.add(ParagraphStyle(name="ClientName", fontName="Helvetica-Bold", fontSize=12, leading=15, alignment=TA_RIGHT))
    styles.add(ParagraphStyle(name="Label", fontSize=8, textColor=colors.HexColor("#666666"), alignment=TA_RIGHT))
    styles.add(ParagraphStyle(name="Small", fontSize=9, textColor=colors.HexColor("#374151")))
    styles.add(ParagraphStyle(name="SmallRight", parent=styles["Small"], alignment=TA_RIGHT))
    styles.add(ParagraphStyle(name="Footer", fontSize=8, textColor=colors.grey, alignment=1))
    return styles

def render_invoice_pdf(invoice: InvoiceDetail, company: CompanySettings, logo_path=None) -> bytes:
    """Render an invoice as an A4 PDF document and return its bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, leftMargin=40, rightMargin=40, topMargin=40, bottomMargin=40)
    styles = _styles()
    elements = []

    # 1. Header: company + client
    header = Table(
        [[_company_block(company, logo_path, styles), _client_block(invoice, styles)]],
        colWidths=[doc.width * 0.55, doc.width * 0.45],
    )
    header.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    elements.append(header)
    elements.append(Spacer(1, 30))

    # 2. Invoice metadata
    meta = Table(
        [
            ["INVOICE NUMBER", "ISSUE DATE", "DUE DATE"],
            [
                invoice.invoice_number,
                invoice.issue_date.isoformat() if invoice.issue_date else "",
                invoice.due_date.isoformat() if invoice.due_date else "-",
            ],
        ],
        colWidths=[doc.width / 3] * 3,
    )
    meta.setStyle(TableStyle([
        ("FONTSIZE", (0, 0), (-1, 0), 8),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.HexColor("#666666")),
        ("FONTNAME", (0, 1), (-1, 1), "Helvetica-Bold"),
        ("LINEBELOW", (0, 1), (-1, 1), 1, colors.HexColor("#e5e7eb")),
    ]))
    elements.append(meta)
    elements.append(Spacer(1, 24))

    # 3. Line items
    rows = [["DESCRIPTION", "QTY", "UNIT PRICE", "AMOUNT"]]
    for item in invoice.line_items:
        rows.append([
            _p(item.description, styles["Normal"]),
            _number(item.quantity),
            format_currency(item.unit_price),
            format_currency(item.amount),
        ])
    items_table = Table(rows, colWidths=[doc.width * 0.5, doc.width * 0.1, doc.width * 0.2, doc.width * 0.2], repeatRows=1)
    items_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f3f4f6")),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 8),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.HexColor("#e5e7eb")),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 20))

    # 4. Totals
    totals_table = Table(
        [
            ["Subtotal", format_currency(invoice.subtotal)],
            [f"Tax ({_number(invoice.tax_rate)}%)", format_currency(invoice.tax_amount)],
            ["Total", format_currency(invoice.total)],
        ],
        colWidths=[100, 100],
        hAlign="RIGHT",
    )
    totals_table.setStyle(TableStyle([
        ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
        ("TEXTCOLOR", (0, 0), (0, 1), colors.HexColor("#666666")),
        ("FONTNAME", (0, 2), (-1, 2), "Helvetica-Bold"),
        ("FONTSIZE", (0, 2), (-1, 2), 12),
        ("LINEABOVE", (0, 2), (-1, 2), 2, colors.HexColor("#111827")),
    ]))
    elements.append(totals_table)

    # 5. Bank details
    if company.has_bank_details:
        elements.append(Spacer(1, 36))
        elements.append(Paragraph("Bank Details", styles["Heading4"]))
        for label, value in (("Bank:", company.bank_name), ("IBAN:", company.bank_iban), ("BIC:", company.bank_bic)):
            if value:
                elements.append(Paragraph(f"<b>{label}</b> {escape(value)}", styles["Small"]))

    if invoice.notes:
        elements.append(Spacer(1, 24))
        elements.append(_p(invoice.notes, styles["Footer"]))

    try:
        doc.build(elements)
    except Exception as e:
        logger.error(f"PDF Build Failed for {invoice.invoice_number}: {str(e)}")
        raise PdfRenderError("PDF generation failed during document build.") from e

    return buffer.getvalue()
