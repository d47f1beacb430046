"""Recurring expense template endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_now, get_session
from ...api.errors import NotFoundError
from ...core.security import CurrentUser
from ...models.budget import (
    RecurringExpense,
    RecurringExpenseCreate,
    RecurringExpenseUpdate,
    ReorderRequest,
)
from ...services.recurring import RecurringExpenseService

router = APIRouter(prefix="/recurring-expenses")


def get_recurring_service(
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> RecurringExpenseService:
    return RecurringExpenseService(session, user.uid)


@router.get("", response_model=List[RecurringExpense])
def list_recurring_expenses(service: RecurringExpenseService = Depends(get_recurring_service)):
    return service.list()


@router.post("", response_model=RecurringExpense, status_code=status.HTTP_201_CREATED)
def create_recurring_expense(
    payload: RecurringExpenseCreate,
    service: RecurringExpenseService = Depends(get_recurring_service),
    now: datetime = Depends(get_now),
):
    return service.create(payload, now)


@router.post("/reorder", response_model=List[RecurringExpense])
def reorder_recurring_expenses(
    payload: ReorderRequest,
    service: RecurringExpenseService = Depends(get_recurring_service),
):
    return service.reorder(payload.from_index, payload.to_index)


@router.get("/{expense_id}", response_model=RecurringExpense)
def get_recurring_expense(expense_id: str, service: RecurringExpenseService = Depends(get_recurring_service)):
    expense = service.get(expense_id)
    if expense is None:
        raise NotFoundError("Recurring expense", expense_id)
    return expense


@router.patch("/{expense_id}", response_model=RecurringExpense)
def update_recurring_expense(
    expense_id: str,
    payload: RecurringExpenseUpdate,
    service: RecurringExpenseService = Depends(get_recurring_service),
):
    expense = service.update(expense_id, payload)
    if expense is None:
        raise NotFoundError("Recurring expense", expense_id)
    return expense


@router.delete("/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recurring_expense(expense_id: str, service: RecurringExpenseService = Depends(get_recurring_service)):
    """Existing budgets keep their copies of the template."""
    if not service.delete(expense_id):
        raise NotFoundError("Recurring expense", expense_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
