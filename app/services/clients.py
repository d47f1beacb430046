"""Billing clients."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..core.logging import get_logger
from ..models.billing import Client, ClientCreate, ClientUpdate
from ..storage.tables import ClientRow
from ..utils.ids import new_id
from .limits import ResourceKind, assert_under_limit

logger = get_logger(__name__)

_REQUIRED_FIELDS = {"name", "email", "hourly_rate", "invoice_cc_emails"}


def _to_model(row: ClientRow) -> Client:
    return Client(
        id=row.id,
        name=row.name,
        email=row.email,
        invoice_cc_emails=list(row.invoice_cc_emails or []),
        company=row.company,
        hourly_rate=row.hourly_rate,
        phone=row.phone,
        address=row.address,
        date_created=row.date_created,
    )


class ClientService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def _row(self, client_id: str) -> Optional[ClientRow]:
        return self.session.scalars(
            select(ClientRow).where(ClientRow.user_id == self.user_id, ClientRow.id == client_id)
        ).first()

    def list(self) -> List[Client]:
        rows = self.session.scalars(
            select(ClientRow)
            .where(ClientRow.user_id == self.user_id)
            .order_by(func.lower(ClientRow.name), ClientRow.id)
        )
        return [_to_model(row) for row in rows]

    def get(self, client_id: str) -> Optional[Client]:
        row = self._row(client_id)
        return _to_model(row) if row is not None else None

    def create(self, payload: ClientCreate, now: datetime) -> Client:
        assert_under_limit(self.session, self.user_id, ResourceKind.CLIENTS, now)

        row = ClientRow(id=new_id(), user_id=self.user_id, date_created=now, **payload.model_dump())
        self.session.add(row)
        self.session.commit()
        logger.info("client_created", user_id=self.user_id, client_id=row.id)
        return _to_model(row)

    def update(self, client_id: str, payload: ClientUpdate) -> Optional[Client]:
        row = self._row(client_id)
        if row is None:
            return None
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None and field in _REQUIRED_FIELDS:
                continue
            setattr(row, field, value)
        self.session.commit()
        return _to_model(row)

    def set_cc_emails(self, client_id: str, emails: List[str]) -> None:
        row = self._row(client_id)
        if row is not None:
            row.invoice_cc_emails = list(emails)
            self.session.commit()

    def delete(self, client_id: str) -> bool:
        row = self._row(client_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.commit()
        return True
