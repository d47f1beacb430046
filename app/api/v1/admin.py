"""Super admin endpoints."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api.deps import get_now, get_session, require_super_admin
from ...api.errors import NotFoundError
from ...core.security import CurrentUser
from ...models.limits import AdminClientList, AdminDashboardStats, UserLimits, UserLimitsOverride
from ...services.admin import dashboard_stats, list_clients, user_exists
from ...services.limits import save_limits

router = APIRouter(prefix="/admin")


@router.get("/access")
def check_access(admin: CurrentUser = Depends(require_super_admin)) -> dict:
    return {"ok": True, "uid": admin.uid}


@router.get("/clients", response_model=AdminClientList)
def admin_list_clients(
    admin: CurrentUser = Depends(require_super_admin),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    return list_clients(session, now)


@router.put("/clients/{uid}/limits", response_model=UserLimits)
def admin_update_limits(
    uid: str,
    payload: UserLimitsOverride,
    admin: CurrentUser = Depends(require_super_admin),
    session: Session = Depends(get_session),
):
    if not user_exists(session, uid):
        raise NotFoundError("User", uid)
    return save_limits(session, uid, payload)


@router.get("/stats", response_model=AdminDashboardStats)
def admin_stats(
    admin: CurrentUser = Depends(require_super_admin),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
):
    return dashboard_stats(session, now)
