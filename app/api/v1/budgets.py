"""Budget and budget line item endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_now, get_session
from ...api.errors import NotFoundError
from ...core.security import CurrentUser
from ...models.budget import (
    Budget,
    BudgetCreate,
    BudgetLineItemCreate,
    BudgetLineItemUpdate,
    BudgetSummary,
    BudgetUpdate,
    ReorderRequest,
)
from ...services.budgets import BudgetService

router = APIRouter(prefix="/budgets")


def get_budget_service(
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> BudgetService:
    return BudgetService(session, user.uid)


def _found(budget, budget_id: str) -> Budget:
    if budget is None:
        raise NotFoundError("Budget", budget_id)
    return budget


@router.get("", response_model=List[BudgetSummary])
def list_budgets(service: BudgetService = Depends(get_budget_service)):
    return service.list()


@router.post("", response_model=Budget, status_code=status.HTTP_201_CREATED)
def create_budget(
    payload: BudgetCreate,
    service: BudgetService = Depends(get_budget_service),
    now: datetime = Depends(get_now),
):
    """New budget pre-filled from the recurring templates."""
    return service.create(payload, now)


@router.get("/{budget_id}", response_model=Budget)
def get_budget(budget_id: str, service: BudgetService = Depends(get_budget_service)):
    return _found(service.get(budget_id), budget_id)


@router.patch("/{budget_id}", response_model=Budget)
def update_budget(
    budget_id: str,
    payload: BudgetUpdate,
    service: BudgetService = Depends(get_budget_service),
):
    return _found(service.update(budget_id, payload), budget_id)


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_budget(budget_id: str, service: BudgetService = Depends(get_budget_service)):
    if not service.delete(budget_id):
        raise NotFoundError("Budget", budget_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{budget_id}/items", response_model=Budget, status_code=status.HTTP_201_CREATED)
def add_line_item(
    budget_id: str,
    payload: BudgetLineItemCreate,
    service: BudgetService = Depends(get_budget_service),
):
    return _found(service.add_item(budget_id, payload), budget_id)


@router.post("/{budget_id}/items/reorder", response_model=Budget)
def reorder_line_items(
    budget_id: str,
    payload: ReorderRequest,
    service: BudgetService = Depends(get_budget_service),
):
    return _found(service.reorder_items(budget_id, payload.from_index, payload.to_index), budget_id)


@router.patch("/{budget_id}/items/{item_id}", response_model=Budget)
def update_line_item(
    budget_id: str,
    item_id: str,
    payload: BudgetLineItemUpdate,
    service: BudgetService = Depends(get_budget_service),
):
    budget = service.update_item(budget_id, item_id, payload)
    if budget is None:
        raise NotFoundError("Line item", item_id)
    return budget


@router.delete("/{budget_id}/items/{item_id}", response_model=Budget)
def delete_line_item(
    budget_id: str,
    item_id: str,
    service: BudgetService = Depends(get_budget_service),
):
    budget = service.delete_item(budget_id, item_id)
    if budget is None:
        raise NotFoundError("Line item", item_id)
    return budget
