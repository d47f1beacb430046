from datetime import datetime, timezone

from app.models.billing import Client, CompanySettings, Invoice, InvoiceLineItem
from app.services.pdf import pdf_filename, render_invoice_pdf
from app.utils.formatting import format_currency, format_long_date


def test_format_currency():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-75) == "-$75.00"
    assert format_currency(0) == "$0.00"


def test_format_long_date():
    assert format_long_date(datetime(2026, 10, 18, tzinfo=timezone.utc)) == "October 18, 2026"


def test_render_invoice_pdf():
    created = datetime(2026, 3, 15, tzinfo=timezone.utc)
    invoice = Invoice(
        id="inv-1",
        invoice_number="INV-2026-0007",
        client_id="c1",
        client_name="Acme & Sons",
        client_email="ap@acme.test",
        date_created=created,
        date_due=datetime(2026, 4, 14, tzinfo=timezone.utc),
        status="draft",
        line_items=[InvoiceLineItem(id="l1", description="Design <review>", hours=2, rate=80, amount=160)],
        total=160,
        notes="Wire transfer\nIBAN on request",
        terms="Net 30",
    )
    client = Client(
        id="c1", name="Acme & Sons", email="ap@acme.test", company="Acme", address="2 Side St", date_created=created
    )
    company = CompanySettings(company_name="Studio North", email="owner@example.com", phone="555-0199")

    content = render_invoice_pdf(invoice, client, company)
    assert content.startswith(b"%PDF")
    assert len(content) > 1000
    assert pdf_filename(invoice) == "INV-2026-0007.pdf"
