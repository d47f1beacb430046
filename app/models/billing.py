"""Pydantic models for clients, invoices and company settings."""

from __future__ import annotations

import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

InvoiceStatus = Literal["draft", "sent", "paid", "archived"]
INVOICE_STATUSES = ("draft", "sent", "paid", "archived")


def _clean_emails(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    cleaned = [value.strip() for value in values if value and value.strip()]
    for value in cleaned:
        if not _is_email(value):
            raise ValueError(f"invalid email address: {value}")
    return cleaned


def _is_email(value: str) -> bool:
    return re.match(EMAIL_PATTERN, value) is not None


class Client(BaseModel):
    id: str
    name: str
    email: str
    invoice_cc_emails: List[str] = Field(default_factory=list)
    company: Optional[str] = None
    hourly_rate: float = 0.0
    phone: Optional[str] = None
    address: Optional[str] = None
    date_created: datetime


class ClientCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    invoice_cc_emails: List[str] = Field(default_factory=list)
    company: Optional[str] = Field(default=None, max_length=200)
    hourly_rate: float = Field(default=0.0, ge=0)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("invoice_cc_emails")
    @classmethod
    def _check_cc(cls, value: List[str]) -> List[str]:
        return _clean_emails(value) or []


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN, max_length=320)
    invoice_cc_emails: Optional[List[str]] = None
    company: Optional[str] = Field(default=None, max_length=200)
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = None

    @field_validator("name", "email", mode="before")
    @classmethod
    def _strip(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("invoice_cc_emails")
    @classmethod
    def _check_cc(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_emails(value)


class InvoiceLineItem(BaseModel):
    id: str
    description: str
    hours: float
    rate: float
    amount: float


class InvoiceLineItemInput(BaseModel):
    id: Optional[str] = None
    description: str = Field(default="", max_length=500)
    hours: float = Field(ge=0)
    rate: float = Field(ge=0)


class Invoice(BaseModel):
    id: str
    invoice_number: str
    client_id: str
    client_name: str
    client_email: str
    date_created: datetime
    date_sent: Optional[datetime] = None
    date_due: datetime
    date_paid: Optional[datetime] = None
    status: InvoiceStatus
    line_items: List[InvoiceLineItem]
    total: float
    notes: Optional[str] = None
    terms: str


class InvoiceCreate(BaseModel):
    client_id: str = Field(min_length=1)
    line_items: List[InvoiceLineItemInput] = Field(min_length=1)
    date_created: Optional[datetime] = None
    status: InvoiceStatus = "draft"
    notes: Optional[str] = None
    terms: str = Field(default="Net 30", min_length=1, max_length=100)


class InvoiceUpdate(BaseModel):
    client_id: Optional[str] = Field(default=None, min_length=1)
    line_items: Optional[List[InvoiceLineItemInput]] = None
    date_created: Optional[datetime] = None
    status: Optional[InvoiceStatus] = None
    notes: Optional[str] = None
    terms: Optional[str] = Field(default=None, min_length=1, max_length=100)

    @field_validator("line_items")
    @classmethod
    def _not_empty(cls, value):
        if value is not None and not value:
            raise ValueError("an invoice needs at least one line item")
        return value


class InvoicePage(BaseModel):
    items: List[Invoice]
    next_cursor: Optional[str] = None
    total: int


class InvoiceStatusCounts(BaseModel):
    all: int = 0
    draft: int = 0
    sent: int = 0
    paid: int = 0
    archived: int = 0


class CompanySettings(BaseModel):
    company_name: str = Field(min_length=1, max_length=200)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = None
    website: Optional[str] = Field(default=None, max_length=300)
    default_invoice_notes: Optional[str] = None
    tax_set_aside_percentage: Optional[float] = Field(default=None, ge=0, le=100)


class InvoiceCounter(BaseModel):
    year: int = Field(ge=1970, le=9999)
    count: int = Field(ge=0)


class InvoiceCounterView(InvoiceCounter):
    current_number: Optional[str] = None
    next_number: str


class SendInvoiceRequest(BaseModel):
    body: Optional[str] = None
    # None keeps the client's saved cc list
    cc_emails: Optional[List[str]] = None

    @field_validator("cc_emails")
    @classmethod
    def _check_cc(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_emails(value)


class SendInvoiceResponse(BaseModel):
    message_id: str
    cc: List[str]
    invoice: Invoice
