"""Invoice PDF rendering with reportlab."""

from __future__ import annotations

import io
from typing import List
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..models.billing import Client, CompanySettings, Invoice
from ..utils.formatting import format_currency, format_long_date

HEADER_BLUE = colors.Color(41 / 255, 128 / 255, 185 / 255)


def pdf_filename(invoice: Invoice) -> str:
    return f"{invoice.invoice_number}.pdf"


def _lines(text: str) -> str:
    return "<br/>".join(escape(line) for line in text.splitlines())


def _company_block(company: CompanySettings) -> str:
    parts: List[str] = [f"<b>{escape(company.company_name)}</b>", escape(company.email)]
    if company.phone:
        parts.append(escape(company.phone))
    if company.address:
        parts.append(_lines(company.address))
    return "<br/>".join(parts)


def _client_block(client: Client) -> str:
    parts: List[str] = ["<b>Bill To:</b>", escape(client.name)]
    if client.company:
        parts.append(escape(client.company))
    parts.append(escape(client.email))
    if client.phone:
        parts.append(escape(client.phone))
    if client.address:
        parts.append(_lines(client.address))
    return "<br/>".join(parts)


def render_invoice_pdf(invoice: Invoice, client: Client, company: CompanySettings) -> bytes:
    """Lay out ``invoice`` on a letter page and return the PDF bytes.

    Same input, same layout; the byte stream itself carries reportlab's
    creation timestamp.
    """
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=letter,
        rightMargin=54,
        leftMargin=54,
        topMargin=54,
        bottomMargin=54,
        title=f"Invoice {invoice.invoice_number}",
        author=company.company_name,
    )
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(name="InvTitle", parent=styles["Title"], fontSize=28, alignment=TA_CENTER))
    styles.add(ParagraphStyle(name="InvLeft", parent=styles["Normal"], fontSize=10, leading=13, alignment=TA_LEFT))
    styles.add(ParagraphStyle(name="InvRight", parent=styles["Normal"], fontSize=10, leading=13, alignment=TA_RIGHT))
    story = []

    story.append(Paragraph("INVOICE", styles["InvTitle"]))
    story.append(Spacer(1, 18))

    details = (
        f"<b>Invoice #:</b> {escape(invoice.invoice_number)}<br/>"
        f"<b>Date:</b> {format_long_date(invoice.date_created)}<br/>"
        f"<b>Due:</b> {format_long_date(invoice.date_due)}"
    )
    header = Table(
        [[Paragraph(_company_block(company), styles["InvLeft"]), Paragraph(details, styles["InvRight"])]],
        colWidths=[300, 204],
    )
    header.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 0),
    ]))
    story.append(header)
    story.append(Spacer(1, 18))
    story.append(Paragraph(_client_block(client), styles["InvLeft"]))
    story.append(Spacer(1, 18))

    rows = [["Description", "Hours", "Rate", "Amount"]]
    for item in invoice.line_items:
        rows.append([
            Paragraph(escape(item.description), styles["InvLeft"]),
            f"{item.hours:.2f}",
            format_currency(item.rate),
            format_currency(item.amount),
        ])
    items_table = Table(rows, colWidths=[274, 60, 80, 90], repeatRows=1)
    items_table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_BLUE),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 10),
        ("FONTSIZE", (0, 1), (-1, -1), 9),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.whitesmoke]),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
    ]))
    story.append(items_table)
    story.append(Spacer(1, 12))

    total_table = Table([["Total:", format_currency(invoice.total)]], colWidths=[414, 90])
    total_table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 14),
        ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
    ]))
    story.append(total_table)
    story.append(Spacer(1, 18))

    story.append(Paragraph(f"<b>Payment Terms:</b> {escape(invoice.terms)}", styles["InvLeft"]))
    if invoice.notes:
        story.append(Spacer(1, 8))
        story.append(Paragraph(f"<b>Notes:</b><br/>{_lines(invoice.notes)}", styles["InvLeft"]))

    def _footer(canvas, document) -> None:
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(colors.grey)
        canvas.drawCentredString(letter[0] / 2, 30, "Thank you for your business!")
        canvas.restoreState()

    doc.build(story, onFirstPage=_footer, onLaterPages=_footer)
    return buf.getvalue()
