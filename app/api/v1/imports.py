"""Migration of data exported from the browser-only version of the app."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_session, get_validation_service
from ...core.security import CurrentUser
from ...services.importer import ImportResult, import_legacy_export
from ...services.validation import ValidationService

router = APIRouter(prefix="/import")


@router.post("/legacy", response_model=ImportResult)
def import_legacy(
    payload: Dict[str, Any],
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
    validation_service: ValidationService = Depends(get_validation_service),
):
    """Validate the export document, then write it in one transaction."""
    return import_legacy_export(session, user.uid, payload, validation_service)
