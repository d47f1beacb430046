"""Plan limits and usage for the calling user."""

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api.deps import get_current_user, get_now, get_session
from ...core.security import CurrentUser
from ...models.limits import UsageReport
from ...services.limits import resolve_limits, usage_summary

router = APIRouter()


@router.get("/usage", response_model=UsageReport)
def read_usage(
    user: CurrentUser = Depends(get_current_user),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    return UsageReport(
        limits=resolve_limits(session, user.uid),
        usage=usage_summary(session, user.uid, now),
    )
