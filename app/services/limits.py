"""Per-plan usage limits.

Checks are best-effort: the count is taken right before the write but not
inside the same transaction, so a burst of concurrent creates can overshoot
a limit by a few items. Plan limits are a soft quota.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..api.errors import PlanLimitError
from ..core.logging import get_logger
from ..models.limits import UsageSummary, UserLimits, UserLimitsOverride
from ..storage.tables import BudgetRow, ClientRow, InvoiceRow, RecurringExpenseRow, UserLimitsRow

logger = get_logger(__name__)

DEFAULT_PLAN = "Free"

DEFAULT_LIMITS_BY_PLAN: Dict[str, UserLimits] = {
    "Free": UserLimits(plan="Free", clients=1, invoices_per_month=2, budgets_per_month=1, recurring_templates=5),
    "Basic": UserLimits(plan="Basic", clients=5, invoices_per_month=10, budgets_per_month=5, recurring_templates=25),
    "Pro": UserLimits(plan="Pro", clients=50, invoices_per_month=100, budgets_per_month=20, recurring_templates=100),
    "Advanced": UserLimits(
        plan="Advanced", clients=1000, invoices_per_month=1000, budgets_per_month=100, recurring_templates=1000
    ),
}


class ResourceKind(str, Enum):
    CLIENTS = "clients"
    INVOICES = "invoices"
    BUDGETS = "budgets"
    RECURRING_TEMPLATES = "recurring_templates"


def default_limits_for_plan(plan: str) -> UserLimits:
    return DEFAULT_LIMITS_BY_PLAN[plan].model_copy()


def month_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """``[start of now's month, start of the next month)`` in UTC."""
    now = now.astimezone(timezone.utc) if now.tzinfo else now.replace(tzinfo=timezone.utc)
    start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)
    if now.month == 12:
        next_start = datetime(now.year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        next_start = datetime(now.year, now.month + 1, 1, tzinfo=timezone.utc)
    return start, next_start


def get_limits_override(session: Session, user_id: str) -> Optional[UserLimitsOverride]:
    row = session.get(UserLimitsRow, user_id)
    if row is None:
        return None
    return UserLimitsOverride(
        plan=row.plan,
        clients=row.clients,
        invoices_per_month=row.invoices_per_month,
        budgets_per_month=row.budgets_per_month,
        recurring_templates=row.recurring_templates,
    )


def merge_limits(override: Optional[UserLimitsOverride]) -> UserLimits:
    """Stored override fields win; the rest come from the plan defaults."""
    if override is None:
        return default_limits_for_plan(DEFAULT_PLAN)

    plan = override.plan or DEFAULT_PLAN
    defaults = default_limits_for_plan(plan)
    values = override.model_dump(exclude_none=True, exclude={"plan"})
    return defaults.model_copy(update={"plan": plan, **values})


def resolve_limits(session: Session, user_id: str) -> UserLimits:
    return merge_limits(get_limits_override(session, user_id))


def save_limits(session: Session, user_id: str, limits: UserLimitsOverride) -> UserLimits:
    session.merge(
        UserLimitsRow(
            user_id=user_id,
            plan=limits.plan,
            clients=limits.clients,
            invoices_per_month=limits.invoices_per_month,
            budgets_per_month=limits.budgets_per_month,
            recurring_templates=limits.recurring_templates,
        )
    )
    session.commit()
    resolved = merge_limits(limits)
    logger.info("user_limits_updated", user_id=user_id, **resolved.model_dump())
    return resolved


def _count(session: Session, statement) -> int:
    return int(session.execute(statement).scalar_one())


def count_resource(session: Session, user_id: str, kind: ResourceKind, now: datetime) -> int:
    """Clients and templates count in total; invoices and budgets per calendar month."""
    if kind is ResourceKind.CLIENTS:
        return _count(session, select(func.count()).select_from(ClientRow).where(ClientRow.user_id == user_id))
    if kind is ResourceKind.RECURRING_TEMPLATES:
        return _count(
            session,
            select(func.count()).select_from(RecurringExpenseRow).where(RecurringExpenseRow.user_id == user_id),
        )

    table = InvoiceRow if kind is ResourceKind.INVOICES else BudgetRow
    start, next_start = month_bounds(now)
    return _count(
        session,
        select(func.count())
        .select_from(table)
        .where(
            table.user_id == user_id,
            table.date_created >= start,
            table.date_created < next_start,
        ),
    )


def limit_for(limits: UserLimits, kind: ResourceKind) -> int:
    return {
        ResourceKind.CLIENTS: limits.clients,
        ResourceKind.INVOICES: limits.invoices_per_month,
        ResourceKind.BUDGETS: limits.budgets_per_month,
        ResourceKind.RECURRING_TEMPLATES: limits.recurring_templates,
    }[kind]


def usage_summary(session: Session, user_id: str, now: datetime) -> UsageSummary:
    return UsageSummary(
        clients=count_resource(session, user_id, ResourceKind.CLIENTS, now),
        invoices_this_month=count_resource(session, user_id, ResourceKind.INVOICES, now),
        budgets_this_month=count_resource(session, user_id, ResourceKind.BUDGETS, now),
        recurring_templates=count_resource(session, user_id, ResourceKind.RECURRING_TEMPLATES, now),
    )


def assert_under_limit(session: Session, user_id: str, kind: ResourceKind, now: datetime) -> None:
    """Raise ``PlanLimitError`` when one more ``kind`` would exceed the user's plan."""
    limit = limit_for(resolve_limits(session, user_id), kind)
    current = count_resource(session, user_id, kind, now)
    if current >= limit:
        logger.info("plan_limit_reached", user_id=user_id, resource=kind.value, limit=limit, current=current)
        raise PlanLimitError(kind.value, limit)
