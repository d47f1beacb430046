"""Invoice endpoints: CRUD, listing, PDF export and email delivery."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_email_client, get_now, get_session
from ...api.errors import NotFoundError
from ...core.config import Settings, get_settings
from ...core.security import CurrentUser
from ...models.billing import (
    Invoice,
    InvoiceCreate,
    InvoicePage,
    InvoiceStatus,
    InvoiceStatusCounts,
    InvoiceUpdate,
    SendInvoiceRequest,
    SendInvoiceResponse,
)
from ...services.clients import ClientService
from ...services.company import require_company_settings
from ...services.invoices import InvoiceService
from ...services.mailer import EmailClient, send_invoice
from ...services.pdf import pdf_filename, render_invoice_pdf

router = APIRouter(prefix="/invoices")


def get_invoice_service(
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> InvoiceService:
    return InvoiceService(session, user.uid)


def _found(invoice: Optional[Invoice], invoice_id: str) -> Invoice:
    if invoice is None:
        raise NotFoundError("Invoice", invoice_id)
    return invoice


@router.get("", response_model=InvoicePage)
def list_invoices(
    cursor: Optional[str] = Query(default=None),
    page_size: Optional[int] = Query(default=None, ge=1),
    status_filter: Optional[InvoiceStatus] = Query(default=None, alias="status"),
    service: InvoiceService = Depends(get_invoice_service),
    settings: Settings = Depends(get_settings),
):
    """Newest first. Pass ``next_cursor`` back as ``cursor`` for the following page."""
    size = min(page_size or settings.invoice_page_size, settings.invoice_page_size_max)
    return service.list_page(size, cursor=cursor, status=status_filter)


@router.get("/counts", response_model=InvoiceStatusCounts)
def invoice_counts(service: InvoiceService = Depends(get_invoice_service)):
    return service.status_counts()


@router.post("", response_model=Invoice, status_code=status.HTTP_201_CREATED)
def create_invoice(
    payload: InvoiceCreate,
    service: InvoiceService = Depends(get_invoice_service),
    now: datetime = Depends(get_now),
):
    return service.create(payload, now)


@router.get("/{invoice_id}", response_model=Invoice)
def get_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    return _found(service.get(invoice_id), invoice_id)


@router.patch("/{invoice_id}", response_model=Invoice)
def update_invoice(
    invoice_id: str,
    payload: InvoiceUpdate,
    service: InvoiceService = Depends(get_invoice_service),
    now: datetime = Depends(get_now),
):
    return _found(service.update(invoice_id, payload, now), invoice_id)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    if not service.delete(invoice_id):
        raise NotFoundError("Invoice", invoice_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{invoice_id}/pay", response_model=Invoice)
def mark_invoice_paid(
    invoice_id: str,
    service: InvoiceService = Depends(get_invoice_service),
    now: datetime = Depends(get_now),
):
    return _found(service.mark_paid(invoice_id, now), invoice_id)


@router.get("/{invoice_id}/pdf")
def download_invoice_pdf(
    invoice_id: str,
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    invoice = _found(InvoiceService(session, user.uid).get(invoice_id), invoice_id)
    client = ClientService(session, user.uid).get(invoice.client_id)
    if client is None:
        raise NotFoundError("Client", invoice.client_id)
    company = require_company_settings(session, user.uid)

    content = render_invoice_pdf(invoice, client, company)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(invoice)}"'},
    )


@router.post("/{invoice_id}/send", response_model=SendInvoiceResponse)
async def send_invoice_email(
    invoice_id: str,
    payload: SendInvoiceRequest,
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
    email_client: Optional[EmailClient] = Depends(get_email_client),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_now),
):
    """Email the invoice PDF to the client; drafts become ``sent``."""
    return await send_invoice(
        session,
        user.uid,
        invoice_id,
        payload,
        email_client=email_client,
        from_address=settings.email_from,
        now=now,
    )
