"""Company profile and invoice counter settings."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_now, get_session
from ...api.errors import NotFoundError
from ...core.security import CurrentUser
from ...models.billing import CompanySettings, InvoiceCounter, InvoiceCounterView
from ...services.company import get_company_settings, save_company_settings
from ...services.numbering import describe_counter, set_invoice_counter

router = APIRouter(prefix="/settings")


@router.get("/company", response_model=CompanySettings)
def read_company_settings(
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    company = get_company_settings(session, user.uid)
    if company is None:
        raise NotFoundError("Company settings", user.uid)
    return company


@router.put("/company", response_model=CompanySettings)
def write_company_settings(
    payload: CompanySettings,
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return save_company_settings(session, user.uid, payload)


@router.get("/invoice-counter", response_model=InvoiceCounterView)
def read_invoice_counter(
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    return describe_counter(session, user.uid, now)


@router.put("/invoice-counter", response_model=InvoiceCounterView)
def write_invoice_counter(
    payload: InvoiceCounter,
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    """Set the last issued number; the next invoice in that year gets ``count + 1``."""
    set_invoice_counter(session, user.uid, payload)
    return describe_counter(session, user.uid, now)
