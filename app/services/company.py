"""Per-user company profile printed on invoices."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from ..api.errors import APIError
from ..models.billing import CompanySettings
from ..storage.tables import CompanySettingsRow


def get_company_settings(session: Session, user_id: str) -> Optional[CompanySettings]:
    row = session.get(CompanySettingsRow, user_id)
    if row is None:
        return None
    return CompanySettings(
        company_name=row.company_name,
        email=row.email,
        phone=row.phone,
        address=row.address,
        website=row.website,
        default_invoice_notes=row.default_invoice_notes,
        tax_set_aside_percentage=row.tax_set_aside_percentage,
    )


def save_company_settings(session: Session, user_id: str, settings: CompanySettings) -> CompanySettings:
    session.merge(CompanySettingsRow(user_id=user_id, **settings.model_dump()))
    session.commit()
    return settings


def require_company_settings(session: Session, user_id: str) -> CompanySettings:
    """Company profile with a usable email, needed for PDFs and invoice emails."""
    company = get_company_settings(session, user_id)
    if company is None or not company.email.strip():
        raise APIError(
            "COMPANY_SETTINGS_MISSING",
            "Company email not configured in settings",
            status_code=400,
        )
    return company
