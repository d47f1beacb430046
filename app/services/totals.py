"""Totals computation helpers."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Union

from ..models.budget import BudgetLineItem, BudgetTotals
from ..models.billing import InvoiceLineItem

INVOICE_TERM_DAYS = 30

LineItemLike = Union[BudgetLineItem, Mapping[str, Any]]


def _field(item: LineItemLike, name: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def budget_totals(starting_amount: float, line_items: Iterable[LineItemLike]) -> BudgetTotals:
    """Unmarked and final totals, summed in stored order.

    ``final_total - unmarked_total`` always equals the sum of the marked items.
    Item ``status`` plays no part.
    """
    unmarked_sum = 0.0
    all_sum = 0.0
    for item in line_items:
        amount = float(_field(item, "amount", 0.0) or 0.0)
        all_sum += amount
        if not _field(item, "is_marked", False):
            unmarked_sum += amount

    return BudgetTotals(
        unmarked_total=starting_amount + unmarked_sum,
        final_total=starting_amount + all_sum,
    )


def invoice_line_amount(hours: float, rate: float) -> float:
    return hours * rate


def invoice_total(line_items: Iterable[InvoiceLineItem]) -> float:
    total = 0.0
    for item in line_items:
        total += item.amount
    return total


def due_date_for(date_created: datetime) -> datetime:
    return date_created + timedelta(days=INVOICE_TERM_DAYS)
