"""ORM tables. Every row is owned by exactly one user (``user_id``)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base, UTCDateTime


class UserRow(Base):
    __tablename__ = "users"

    uid: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(320))
    display_name: Mapped[Optional[str]] = mapped_column(String(200))
    created_at: Mapped[datetime] = mapped_column(UTCDateTime)
    last_seen_at: Mapped[datetime] = mapped_column(UTCDateTime, index=True)


class BudgetRow(Base):
    __tablename__ = "budgets"
    __table_args__ = (Index("ix_budgets_user_created", "user_id", "date_created"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128))
    name: Mapped[str] = mapped_column(String(200))
    date_created: Mapped[datetime] = mapped_column(UTCDateTime)
    starting_amount: Mapped[float] = mapped_column(Float, default=0.0)
    # Snapshot of line items, stored as a document
    line_items: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)


class RecurringExpenseRow(Base):
    __tablename__ = "recurring_expenses"
    __table_args__ = (Index("ix_recurring_user_order", "user_id", "order"),)

    # Insertion sequence, breaks ties between equal ``order`` values
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True)
    user_id: Mapped[str] = mapped_column(String(128))
    name: Mapped[str] = mapped_column(String(200))
    amount: Mapped[float] = mapped_column(Float, default=0.0)
    link: Mapped[Optional[str]] = mapped_column(Text)
    note: Mapped[Optional[str]] = mapped_column(Text)
    is_automatic: Mapped[bool] = mapped_column(Boolean, default=False)
    order: Mapped[Optional[int]] = mapped_column(Integer)


class ClientRow(Base):
    __tablename__ = "clients"
    __table_args__ = (Index("ix_clients_user_name", "user_id", "name"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128))
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(320))
    invoice_cc_emails: Mapped[List[str]] = mapped_column(JSON, default=list)
    company: Mapped[Optional[str]] = mapped_column(String(200))
    hourly_rate: Mapped[float] = mapped_column(Float, default=0.0)
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    address: Mapped[Optional[str]] = mapped_column(Text)
    date_created: Mapped[datetime] = mapped_column(UTCDateTime)


class InvoiceRow(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        Index("ix_invoices_user_created", "user_id", "date_created", "id"),
        Index("ix_invoices_user_status", "user_id", "status"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128))
    invoice_number: Mapped[str] = mapped_column(String(20))
    client_id: Mapped[str] = mapped_column(String(36))
    client_name: Mapped[str] = mapped_column(String(200))
    client_email: Mapped[str] = mapped_column(String(320))
    date_created: Mapped[datetime] = mapped_column(UTCDateTime)
    date_sent: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    date_due: Mapped[datetime] = mapped_column(UTCDateTime)
    date_paid: Mapped[Optional[datetime]] = mapped_column(UTCDateTime)
    status: Mapped[str] = mapped_column(String(16), default="draft")
    line_items: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)
    total: Mapped[float] = mapped_column(Float, default=0.0)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    terms: Mapped[str] = mapped_column(String(100), default="Net 30")


class CompanySettingsRow(Base):
    __tablename__ = "company_settings"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    company_name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(320))
    phone: Mapped[Optional[str]] = mapped_column(String(50))
    address: Mapped[Optional[str]] = mapped_column(Text)
    website: Mapped[Optional[str]] = mapped_column(String(300))
    default_invoice_notes: Mapped[Optional[str]] = mapped_column(Text)
    tax_set_aside_percentage: Mapped[Optional[float]] = mapped_column(Float)


class UserLimitsRow(Base):
    """Partial override merged over the plan defaults."""

    __tablename__ = "user_limits"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    plan: Mapped[Optional[str]] = mapped_column(String(16))
    clients: Mapped[Optional[int]] = mapped_column(Integer)
    invoices_per_month: Mapped[Optional[int]] = mapped_column(Integer)
    budgets_per_month: Mapped[Optional[int]] = mapped_column(Integer)
    recurring_templates: Mapped[Optional[int]] = mapped_column(Integer)


class InvoiceCounterRow(Base):
    """One row per user; written only through the allocator or the settings screen."""

    __tablename__ = "invoice_counters"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    year: Mapped[int] = mapped_column(Integer)
    count: Mapped[int] = mapped_column(Integer)
