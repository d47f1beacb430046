"""One-time migration of browser-storage exports into the database."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..api.errors import APIError
from ..core.logging import get_logger
from ..models.budget import BudgetLineItem
from ..storage.tables import BudgetRow, RecurringExpenseRow
from ..utils.ids import new_id
from .validation import ValidationService

logger = get_logger(__name__)


class ImportResult(BaseModel):
    budgets: int
    recurring_expenses: int


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _line_item(raw: Dict[str, Any]) -> Dict[str, Any]:
    return BudgetLineItem(
        id=raw.get("id") or new_id(),
        status=raw["status"],
        name=raw["name"],
        amount=raw["amount"],
        link=raw.get("link"),
        note=raw.get("note"),
        is_recurring=raw.get("isRecurring", False),
        is_marked=raw.get("isMarked", False),
    ).model_dump()


def import_legacy_export(
    session: Session,
    user_id: str,
    payload: Dict[str, Any],
    validator: ValidationService,
) -> ImportResult:
    """Write budgets (fresh ids) and upsert templates by id; all or nothing.

    Imports are not counted against plan limits.
    """
    ok, errors = validator.validate(payload)
    if not ok:
        raise APIError("INVALID_IMPORT", "Export document failed validation", status_code=422, details={"errors": errors})

    budgets: List[Dict[str, Any]] = payload.get("budgets", [])
    expenses: List[Dict[str, Any]] = payload.get("recurringExpenses", [])

    for raw in budgets:
        session.add(
            BudgetRow(
                id=new_id(),
                user_id=user_id,
                name=raw["name"],
                date_created=_parse_timestamp(raw["dateCreated"]),
                starting_amount=raw["startingAmount"],
                line_items=[_line_item(item) for item in raw["lineItems"]],
            )
        )

    for index, raw in enumerate(expenses):
        row = session.scalars(select(RecurringExpenseRow).where(RecurringExpenseRow.id == raw["id"])).first()
        if row is not None and row.user_id != user_id:
            session.rollback()
            raise APIError(
                "INVALID_IMPORT",
                "Recurring expense id is already in use",
                status_code=422,
                details={"errors": [{"path": f"/recurringExpenses/{index}/id", "message": "id already in use"}]},
            )
        if row is None:
            row = RecurringExpenseRow(id=raw["id"], user_id=user_id)
            session.add(row)
        row.name = raw["name"]
        row.amount = raw["amount"]
        row.link = raw.get("link")
        row.note = raw.get("note")
        row.is_automatic = raw.get("isAutomatic", False)
        row.order = raw.get("order", index)

    session.commit()
    result = ImportResult(budgets=len(budgets), recurring_expenses=len(expenses))
    logger.info("legacy_import_completed", user_id=user_id, **result.model_dump())
    return result
