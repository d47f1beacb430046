"""Pydantic models for budgets and recurring expense templates."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

LineItemStatus = Literal["incomplete", "complete", "automatic"]


class BudgetLineItem(BaseModel):
    id: str
    status: LineItemStatus = "incomplete"
    name: str
    amount: float = 0.0
    link: Optional[str] = None
    note: Optional[str] = None
    is_recurring: bool = False
    is_marked: bool = False


class BudgetLineItemCreate(BaseModel):
    """Ad-hoc line item added to an existing budget."""

    name: str = Field(default="New Item", min_length=1, max_length=200)
    amount: float = 0.0
    status: LineItemStatus = "incomplete"
    link: Optional[str] = None
    note: Optional[str] = None
    is_marked: bool = False


class BudgetLineItemUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[float] = None
    status: Optional[LineItemStatus] = None
    link: Optional[str] = None
    note: Optional[str] = None
    is_marked: Optional[bool] = None


class BudgetTotals(BaseModel):
    unmarked_total: float
    final_total: float


class Budget(BaseModel):
    id: str
    name: str
    date_created: datetime
    starting_amount: float
    line_items: List[BudgetLineItem] = Field(default_factory=list)
    totals: BudgetTotals


class BudgetSummary(BaseModel):
    """List entry; line items omitted."""

    id: str
    name: str
    date_created: datetime
    starting_amount: float
    line_item_count: int
    totals: BudgetTotals


class BudgetCreate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=200)
    starting_amount: float = 0.0


class BudgetUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    starting_amount: Optional[float] = None


class RecurringExpense(BaseModel):
    id: str
    name: str
    amount: float
    link: Optional[str] = None
    note: Optional[str] = None
    is_automatic: bool = False
    order: int


class RecurringExpenseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    amount: float
    link: Optional[str] = None
    note: Optional[str] = None
    is_automatic: bool = False


class RecurringExpenseUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[float] = None
    link: Optional[str] = None
    note: Optional[str] = None
    is_automatic: Optional[bool] = None


class ReorderRequest(BaseModel):
    """Drag-and-drop move: the row at ``from_index`` lands at ``to_index``."""

    from_index: int = Field(ge=0)
    to_index: int = Field(ge=0)
