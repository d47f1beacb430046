"""Plan limits, usage and administrative views."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

PlanName = Literal["Free", "Basic", "Pro", "Advanced"]


class UserLimits(BaseModel):
    plan: PlanName
    clients: int = Field(ge=0)
    invoices_per_month: int = Field(ge=0)
    budgets_per_month: int = Field(ge=0)
    recurring_templates: int = Field(ge=0)


class UserLimitsOverride(BaseModel):
    """Fields left out fall back to the plan defaults."""

    plan: Optional[PlanName] = None
    clients: Optional[int] = Field(default=None, ge=0)
    invoices_per_month: Optional[int] = Field(default=None, ge=0)
    budgets_per_month: Optional[int] = Field(default=None, ge=0)
    recurring_templates: Optional[int] = Field(default=None, ge=0)


class UsageSummary(BaseModel):
    clients: int
    invoices_this_month: int
    budgets_this_month: int
    recurring_templates: int


class UsageReport(BaseModel):
    limits: UserLimits
    usage: UsageSummary


class AdminClient(BaseModel):
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    limits: UserLimits
    usage: UsageSummary


class AdminClientList(BaseModel):
    clients: List[AdminClient]


class AdminDashboardStats(BaseModel):
    total_users: int
    logged_in_today: int
    logged_in_this_week: int
    logged_in_this_month: int
