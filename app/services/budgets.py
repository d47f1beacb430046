"""Budgets and their line items."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..api.errors import APIError
from ..core.logging import get_logger
from ..models.budget import (
    Budget,
    BudgetCreate,
    BudgetLineItem,
    BudgetLineItemCreate,
    BudgetLineItemUpdate,
    BudgetSummary,
    BudgetUpdate,
    RecurringExpense,
)
from ..storage.tables import BudgetRow
from ..utils.ids import new_id
from ..utils.ordering import move
from .limits import ResourceKind, assert_under_limit
from .recurring import RecurringExpenseService
from .totals import budget_totals

logger = get_logger(__name__)


def initial_status(template: RecurringExpense) -> str:
    # A zero amount wins over the automatic flag.
    if template.amount == 0:
        return "complete"
    if template.is_automatic:
        return "automatic"
    return "incomplete"


def line_item_from_template(template: RecurringExpense) -> BudgetLineItem:
    return BudgetLineItem(
        id=new_id(),
        status=initial_status(template),
        name=template.name,
        amount=template.amount,
        link=template.link,
        note=template.note,
        is_recurring=True,
        is_marked=False,
    )


def _items(row: BudgetRow) -> List[BudgetLineItem]:
    return [BudgetLineItem.model_validate(item) for item in row.line_items or []]


def _to_model(row: BudgetRow) -> Budget:
    items = _items(row)
    return Budget(
        id=row.id,
        name=row.name,
        date_created=row.date_created,
        starting_amount=row.starting_amount,
        line_items=items,
        totals=budget_totals(row.starting_amount, items),
    )


def _to_summary(row: BudgetRow) -> BudgetSummary:
    items = _items(row)
    return BudgetSummary(
        id=row.id,
        name=row.name,
        date_created=row.date_created,
        starting_amount=row.starting_amount,
        line_item_count=len(items),
        totals=budget_totals(row.starting_amount, items),
    )


class BudgetService:
    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def _row(self, budget_id: str) -> Optional[BudgetRow]:
        return self.session.scalars(
            select(BudgetRow).where(BudgetRow.user_id == self.user_id, BudgetRow.id == budget_id)
        ).first()

    def _save_items(self, row: BudgetRow, items: List[BudgetLineItem]) -> Budget:
        # Reassign so the JSON column is flagged dirty
        row.line_items = [item.model_dump() for item in items]
        self.session.commit()
        return _to_model(row)

    def list(self) -> List[BudgetSummary]:
        rows = self.session.scalars(
            select(BudgetRow)
            .where(BudgetRow.user_id == self.user_id)
            .order_by(BudgetRow.date_created.desc(), BudgetRow.id.desc())
        )
        return [_to_summary(row) for row in rows]

    def get(self, budget_id: str) -> Optional[Budget]:
        row = self._row(budget_id)
        return _to_model(row) if row is not None else None

    def create(self, payload: BudgetCreate, now: datetime) -> Budget:
        assert_under_limit(self.session, self.user_id, ResourceKind.BUDGETS, now)

        templates = RecurringExpenseService(self.session, self.user_id).list()
        items = [line_item_from_template(template) for template in templates]
        name = (payload.name or "").strip() or now.date().isoformat()

        row = BudgetRow(
            id=new_id(),
            user_id=self.user_id,
            name=name,
            date_created=now,
            starting_amount=payload.starting_amount,
            line_items=[item.model_dump() for item in items],
        )
        self.session.add(row)
        self.session.commit()
        logger.info("budget_created", user_id=self.user_id, budget_id=row.id, line_items=len(items))
        return _to_model(row)

    def update(self, budget_id: str, payload: BudgetUpdate) -> Optional[Budget]:
        row = self._row(budget_id)
        if row is None:
            return None
        if payload.name is not None:
            row.name = payload.name
        if payload.starting_amount is not None:
            row.starting_amount = payload.starting_amount
        self.session.commit()
        return _to_model(row)

    def delete(self, budget_id: str) -> bool:
        row = self._row(budget_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.commit()
        return True

    def add_item(self, budget_id: str, payload: BudgetLineItemCreate) -> Optional[Budget]:
        row = self._row(budget_id)
        if row is None:
            return None
        item = BudgetLineItem(id=new_id(), is_recurring=False, **payload.model_dump())
        return self._save_items(row, _items(row) + [item])

    def update_item(self, budget_id: str, item_id: str, payload: BudgetLineItemUpdate) -> Optional[Budget]:
        row = self._row(budget_id)
        if row is None:
            return None

        changes: Dict[str, Any] = payload.model_dump(exclude_unset=True)
        for field in ("name", "amount", "status", "is_marked"):
            if changes.get(field, "") is None:
                changes.pop(field)

        items = _items(row)
        for index, item in enumerate(items):
            if item.id == item_id:
                items[index] = item.model_copy(update=changes)
                return self._save_items(row, items)
        return None

    def delete_item(self, budget_id: str, item_id: str) -> Optional[Budget]:
        row = self._row(budget_id)
        if row is None:
            return None
        items = _items(row)
        remaining = [item for item in items if item.id != item_id]
        if len(remaining) == len(items):
            return None
        return self._save_items(row, remaining)

    def reorder_items(self, budget_id: str, from_index: int, to_index: int) -> Optional[Budget]:
        row = self._row(budget_id)
        if row is None:
            return None
        try:
            items = move(_items(row), from_index, to_index)
        except ValueError as exc:
            raise APIError("INVALID_REORDER", str(exc), status_code=422) from exc
        return self._save_items(row, items)
