"""Invoices: creation with number allocation, edits, status changes and listing."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from ..api.errors import InvoiceLockedError, NotFoundError
from ..core.logging import get_logger
from ..models.billing import (
    INVOICE_STATUSES,
    Client,
    Invoice,
    InvoiceCreate,
    InvoiceLineItem,
    InvoiceLineItemInput,
    InvoicePage,
    InvoiceStatusCounts,
    InvoiceUpdate,
)
from ..storage.tables import InvoiceRow
from ..utils.ids import new_id
from .clients import ClientService
from .company import get_company_settings
from .limits import ResourceKind, assert_under_limit
from .numbering import allocate_invoice_number
from .pagination import decode_cursor, encode_cursor
from .totals import due_date_for, invoice_line_amount, invoice_total

logger = get_logger(__name__)


def build_line_items(inputs: List[InvoiceLineItemInput]) -> List[InvoiceLineItem]:
    return [
        InvoiceLineItem(
            id=item.id or new_id(),
            description=item.description,
            hours=item.hours,
            rate=item.rate,
            amount=invoice_line_amount(item.hours, item.rate),
        )
        for item in inputs
    ]


def _to_model(row: InvoiceRow) -> Invoice:
    return Invoice(
        id=row.id,
        invoice_number=row.invoice_number,
        client_id=row.client_id,
        client_name=row.client_name,
        client_email=row.client_email,
        date_created=row.date_created,
        date_sent=row.date_sent,
        date_due=row.date_due,
        date_paid=row.date_paid,
        status=row.status,
        line_items=[InvoiceLineItem.model_validate(item) for item in row.line_items or []],
        total=row.total,
        notes=row.notes,
        terms=row.terms,
    )


def _apply_status(row: InvoiceRow, status: str, now: datetime) -> None:
    row.status = status
    if status == "paid":
        if row.date_paid is None:
            row.date_paid = now
    else:
        row.date_paid = None


class InvoiceService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id
        self.clients = ClientService(session, user_id)

    def _row(self, invoice_id: str) -> Optional[InvoiceRow]:
        return self.session.scalars(
            select(InvoiceRow).where(InvoiceRow.user_id == self.user_id, InvoiceRow.id == invoice_id)
        ).first()

    def _require_client(self, client_id: str) -> Client:
        client = self.clients.get(client_id)
        if client is None:
            raise NotFoundError("Client", client_id)
        return client

    def get(self, invoice_id: str) -> Optional[Invoice]:
        row = self._row(invoice_id)
        return _to_model(row) if row is not None else None

    def list_page(self, page_size: int, cursor: Optional[str] = None, status: Optional[str] = None) -> InvoicePage:
        """Newest first; ``next_cursor`` is None on the last page."""
        conditions = [InvoiceRow.user_id == self.user_id]
        if status:
            conditions.append(InvoiceRow.status == status)
        total = int(
            self.session.execute(select(func.count()).select_from(InvoiceRow).where(*conditions)).scalar_one()
        )

        after = decode_cursor(cursor)
        if after is not None:
            last_created, last_id = after
            conditions.append(
                or_(
                    InvoiceRow.date_created < last_created,
                    and_(InvoiceRow.date_created == last_created, InvoiceRow.id < last_id),
                )
            )

        rows = list(
            self.session.scalars(
                select(InvoiceRow)
                .where(*conditions)
                .order_by(InvoiceRow.date_created.desc(), InvoiceRow.id.desc())
                .limit(page_size + 1)
            )
        )
        has_more = len(rows) > page_size
        rows = rows[:page_size]
        next_cursor = encode_cursor(rows[-1].date_created, rows[-1].id) if has_more and rows else None
        return InvoicePage(items=[_to_model(row) for row in rows], next_cursor=next_cursor, total=total)

    def status_counts(self) -> InvoiceStatusCounts:
        rows = self.session.execute(
            select(InvoiceRow.status, func.count())
            .where(InvoiceRow.user_id == self.user_id)
            .group_by(InvoiceRow.status)
        ).all()
        counts: Dict[str, int] = {status: 0 for status in INVOICE_STATUSES}
        for status, count in rows:
            counts[status] = int(count)
        return InvoiceStatusCounts(all=sum(counts.values()), **counts)

    def create(self, payload: InvoiceCreate, now: datetime) -> Invoice:
        client = self._require_client(payload.client_id)
        assert_under_limit(self.session, self.user_id, ResourceKind.INVOICES, now)

        # Allocated only after the gate so refused creates do not burn numbers.
        invoice_number = allocate_invoice_number(self.session, self.user_id, now)

        notes = payload.notes
        if notes is None:
            company = get_company_settings(self.session, self.user_id)
            notes = company.default_invoice_notes if company else None

        date_created = payload.date_created or now
        line_items = build_line_items(payload.line_items)
        row = InvoiceRow(
            id=new_id(),
            user_id=self.user_id,
            invoice_number=invoice_number,
            client_id=client.id,
            client_name=client.name,
            client_email=client.email,
            date_created=date_created,
            date_due=due_date_for(date_created),
            line_items=[item.model_dump() for item in line_items],
            total=invoice_total(line_items),
            notes=notes,
            terms=payload.terms,
        )
        _apply_status(row, payload.status, now)
        self.session.add(row)
        self.session.commit()

        logger.info(
            "invoice_created",
            user_id=self.user_id,
            invoice_id=row.id,
            invoice_number=invoice_number,
            total=row.total,
        )
        return _to_model(row)

    def update(self, invoice_id: str, payload: InvoiceUpdate, now: datetime) -> Optional[Invoice]:
        row = self._row(invoice_id)
        if row is None:
            return None

        changes = payload.model_dump(exclude_unset=True)
        if row.status == "paid":
            # A paid invoice may only be moved out of ``paid``; nothing else changes with it.
            leaving_paid = changes.get("status") not in (None, "paid")
            if not leaving_paid or set(changes) - {"status"}:
                raise InvoiceLockedError(invoice_id)

        if payload.client_id is not None and payload.client_id != row.client_id:
            client = self._require_client(payload.client_id)
            row.client_id = client.id
            row.client_name = client.name
            row.client_email = client.email

        if payload.line_items is not None:
            line_items = build_line_items(payload.line_items)
            row.line_items = [item.model_dump() for item in line_items]
            row.total = invoice_total(line_items)

        if payload.date_created is not None:
            row.date_created = payload.date_created
            row.date_due = due_date_for(payload.date_created)

        if "notes" in changes:
            row.notes = payload.notes
        if payload.terms is not None:
            row.terms = payload.terms
        if payload.status is not None:
            _apply_status(row, payload.status, now)

        self.session.commit()
        return _to_model(row)

    def mark_paid(self, invoice_id: str, now: datetime) -> Optional[Invoice]:
        row = self._row(invoice_id)
        if row is None:
            return None
        _apply_status(row, "paid", now)
        self.session.commit()
        logger.info("invoice_paid", user_id=self.user_id, invoice_id=invoice_id)
        return _to_model(row)

    def mark_sent(self, invoice_id: str, now: datetime) -> Optional[Invoice]:
        """After delivery: drafts become ``sent``, other statuses stay put."""
        row = self._row(invoice_id)
        if row is None:
            return None
        if row.status == "draft":
            row.status = "sent"
        row.date_sent = now
        self.session.commit()
        return _to_model(row)

    def delete(self, invoice_id: str) -> bool:
        row = self._row(invoice_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.commit()
        return True
