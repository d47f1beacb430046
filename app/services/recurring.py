"""Recurring expense templates, copied into budgets at creation time."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..api.errors import APIError
from ..core.logging import get_logger
from ..models.budget import RecurringExpense, RecurringExpenseCreate, RecurringExpenseUpdate
from ..storage.tables import RecurringExpenseRow
from ..utils.ids import new_id
from ..utils.ordering import move
from .limits import ResourceKind, assert_under_limit

logger = get_logger(__name__)

_REQUIRED_FIELDS = {"name", "amount", "is_automatic"}


def _to_model(row: RecurringExpenseRow, position: int) -> RecurringExpense:
    return RecurringExpense(
        id=row.id,
        name=row.name,
        amount=row.amount,
        link=row.link,
        note=row.note,
        is_automatic=bool(row.is_automatic),
        order=row.order if row.order is not None else position,
    )


class RecurringExpenseService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def _rows(self) -> List[RecurringExpenseRow]:
        # Rows without an order sort last; equal orders keep insertion order.
        statement = (
            select(RecurringExpenseRow)
            .where(RecurringExpenseRow.user_id == self.user_id)
            .order_by(
                RecurringExpenseRow.order.is_(None),
                RecurringExpenseRow.order,
                RecurringExpenseRow.seq,
            )
        )
        return list(self.session.scalars(statement))

    def _row(self, expense_id: str) -> Optional[RecurringExpenseRow]:
        return self.session.scalars(
            select(RecurringExpenseRow).where(
                RecurringExpenseRow.user_id == self.user_id,
                RecurringExpenseRow.id == expense_id,
            )
        ).first()

    def list(self) -> List[RecurringExpense]:
        return [_to_model(row, index) for index, row in enumerate(self._rows())]

    def get(self, expense_id: str) -> Optional[RecurringExpense]:
        row = self._row(expense_id)
        return _to_model(row, 0) if row is not None else None

    def create(self, payload: RecurringExpenseCreate, now: datetime) -> RecurringExpense:
        assert_under_limit(self.session, self.user_id, ResourceKind.RECURRING_TEMPLATES, now)

        position = len(self._rows())
        row = RecurringExpenseRow(
            id=new_id(),
            user_id=self.user_id,
            name=payload.name,
            amount=payload.amount,
            link=payload.link,
            note=payload.note,
            is_automatic=payload.is_automatic,
            order=position,
        )
        self.session.add(row)
        self.session.commit()
        logger.info("recurring_expense_created", user_id=self.user_id, expense_id=row.id)
        return _to_model(row, position)

    def update(self, expense_id: str, payload: RecurringExpenseUpdate) -> Optional[RecurringExpense]:
        row = self._row(expense_id)
        if row is None:
            return None
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None and field in _REQUIRED_FIELDS:
                continue
            setattr(row, field, value)
        self.session.commit()
        return _to_model(row, 0)

    def delete(self, expense_id: str) -> bool:
        row = self._row(expense_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.commit()
        return True

    def reorder(self, from_index: int, to_index: int) -> List[RecurringExpense]:
        try:
            rows = move(self._rows(), from_index, to_index)
        except ValueError as exc:
            raise APIError("INVALID_REORDER", str(exc), status_code=422) from exc

        for index, row in enumerate(rows):
            row.order = index
        self.session.commit()
        return [_to_model(row, index) for index, row in enumerate(rows)]
