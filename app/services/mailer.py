"""Invoice email delivery.

The provider sits behind ``EmailClient`` so tests (and other providers) can
stand in for Postmark. Sending never retries: a failed send surfaces to the
caller, who decides whether to try again.
"""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import httpx
from jinja2 import Environment, FileSystemLoader, StrictUndefined
from markupsafe import escape
from pydantic import BaseModel
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..api.errors import APIError, EmailDeliveryError, NotFoundError
from ..core.logging import get_logger
from ..models.billing import Invoice, SendInvoiceRequest, SendInvoiceResponse
from .clients import ClientService
from .company import require_company_settings
from .invoices import InvoiceService
from .pdf import pdf_filename, render_invoice_pdf

logger = get_logger(__name__)

MAX_CC_RECIPIENTS = 3

_templates = Environment(
    loader=FileSystemLoader(str(Path(__file__).resolve().parent.parent / "templates")),
    undefined=StrictUndefined,
    autoescape=False,
)


class EmailMessage(BaseModel):
    to: str
    cc: List[str] = []
    from_address: str
    reply_to: Optional[str] = None
    subject: str
    html_body: str
    text_body: str
    attachment_name: str
    attachment_base64: str


class EmailClient(ABC):
    """Outbound email provider"""

    @abstractmethod
    async def send(self, message: EmailMessage) -> str:
        """Deliver ``message`` and return the provider's message id"""
        raise NotImplementedError()


class PostmarkClient(EmailClient):
    """Postmark transactional email API"""

    def __init__(self, api_token: str, http_client: httpx.AsyncClient, api_url: str, timeout: float = 30.0):
        self.api_token = api_token
        self.http_client = http_client
        self.api_url = api_url
        self.timeout = timeout

    async def send(self, message: EmailMessage) -> str:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Postmark-Server-Token": self.api_token,
        }
        body = {
            "From": message.from_address,
            "To": message.to,
            "ReplyTo": message.reply_to or message.from_address,
            "Subject": message.subject,
            "HtmlBody": message.html_body,
            "TextBody": message.text_body,
            "Attachments": [
                {
                    "Name": message.attachment_name,
                    "Content": message.attachment_base64,
                    "ContentType": "application/pdf",
                }
            ],
        }
        if message.cc:
            body["Cc"] = ",".join(message.cc)

        try:
            response = await self.http_client.post(self.api_url, headers=headers, json=body, timeout=self.timeout)
        except httpx.HTTPError as exc:
            raise EmailDeliveryError(str(exc) or exc.__class__.__name__) from exc

        if response.status_code >= 400:
            try:
                detail = response.json()
            except ValueError:
                detail = {"Message": response.text}
            if not isinstance(detail, dict):
                detail = {}
            raise EmailDeliveryError(
                str(detail.get("Message") or "provider rejected the message"),
                details={"status_code": response.status_code, "error_code": detail.get("ErrorCode")},
            )

        # Accepted by the provider; an unreadable body must not turn into a failed send.
        try:
            accepted = response.json()
        except ValueError:
            return ""
        if not isinstance(accepted, dict):
            return ""
        return str(accepted.get("MessageID") or "")


def build_cc_list(owner_email: Optional[str], additional: Iterable[str], limit: int = MAX_CC_RECIPIENTS) -> List[str]:
    """Owner first, then unique extra addresses (case-insensitive), at most ``limit`` in total."""
    owner = (owner_email or "").strip()
    owner_key = owner.lower()
    room = limit - 1 if owner else limit

    extras: List[str] = []
    for email in additional:
        key = email.strip().lower()
        if not key or key == owner_key or key in extras:
            continue
        extras.append(key)

    cc = ([owner] if owner else []) + extras[:max(room, 0)]
    return cc[:limit]


def default_email_body(invoice: Invoice, company_name: str) -> str:
    template = _templates.get_template("invoice_email.txt.j2")
    return template.render(
        client_name=invoice.client_name,
        invoice_number=invoice.invoice_number,
        company_name=company_name,
    )


def text_to_html(text: str) -> str:
    return "<br>".join(str(escape(line)) for line in text.split("\n"))


def prepare_invoice_email(
    session: Session,
    user_id: str,
    invoice_id: str,
    request: SendInvoiceRequest,
    email_client: Optional[EmailClient],
    from_address: Optional[str],
) -> Tuple[Invoice, EmailMessage]:
    """Blocking half before delivery: lookups, cc persistence and the PDF render."""
    invoices = InvoiceService(session, user_id)
    clients = ClientService(session, user_id)

    invoice = invoices.get(invoice_id)
    if invoice is None:
        raise NotFoundError("Invoice", invoice_id)
    client = clients.get(invoice.client_id)
    if client is None:
        raise NotFoundError("Client", invoice.client_id)

    company = require_company_settings(session, user_id)
    if email_client is None or not from_address:
        raise APIError("EMAIL_NOT_CONFIGURED", "Email delivery is not configured", status_code=503)

    additional = request.cc_emails if request.cc_emails is not None else client.invoice_cc_emails
    cc = build_cc_list(company.email, additional)

    if request.cc_emails is not None:
        owner_key = company.email.strip().lower()
        saved = [email for email in cc if email.lower() != owner_key]
        if saved != [email.strip().lower() for email in client.invoice_cc_emails]:
            clients.set_cc_emails(client.id, saved)

    text_body = request.body if request.body else default_email_body(invoice, company.company_name)
    pdf_bytes = render_invoice_pdf(invoice, client, company)
    message = EmailMessage(
        to=client.email,
        cc=cc,
        from_address=from_address,
        reply_to=company.email,
        subject=f"Invoice {invoice.invoice_number}",
        html_body=text_to_html(text_body),
        text_body=text_body,
        attachment_name=pdf_filename(invoice),
        attachment_base64=base64.b64encode(pdf_bytes).decode("ascii"),
    )
    return invoice, message


def finalize_invoice_email(session: Session, user_id: str, invoice_id: str, now: datetime) -> Optional[Invoice]:
    return InvoiceService(session, user_id).mark_sent(invoice_id, now)


async def send_invoice(
    session: Session,
    user_id: str,
    invoice_id: str,
    request: SendInvoiceRequest,
    email_client: Optional[EmailClient],
    from_address: Optional[str],
    now: datetime,
) -> SendInvoiceResponse:
    """Email an invoice PDF to its client and flip drafts to ``sent``.

    Database work and rendering run in the threadpool; only the provider call
    is awaited on the event loop.
    """
    invoice, message = await run_in_threadpool(
        prepare_invoice_email, session, user_id, invoice_id, request, email_client, from_address
    )

    try:
        message_id = await email_client.send(message)
    except EmailDeliveryError as exc:
        logger.error(
            "invoice_email_failed",
            user_id=user_id,
            invoice_id=invoice_id,
            error=exc.message,
        )
        raise

    updated = await run_in_threadpool(finalize_invoice_email, session, user_id, invoice_id, now)
    logger.info(
        "invoice_email_sent",
        user_id=user_id,
        invoice_id=invoice_id,
        message_id=message_id,
        cc_count=len(message.cc),
    )
    return SendInvoiceResponse(message_id=message_id, cc=message.cc, invoice=updated or invoice)
