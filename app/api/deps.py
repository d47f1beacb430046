"""Request-scoped dependencies"""
from datetime import datetime
from typing import Callable, Iterator, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..core.config import Settings, get_settings
from ..core.security import CurrentUser, resolve_identity
from ..services.admin import is_super_admin, touch_user
from ..services.mailer import EmailClient
from ..services.validation import ValidationService
from .errors import ForbiddenError


def get_session(request: Request) -> Iterator[Session]:
    """One session per request, closed (and rolled back if still open) afterwards"""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def get_now(request: Request) -> datetime:
    """Current time from the app clock"""
    clock: Callable[[], datetime] = request.app.state.clock
    return clock()


def get_email_client(request: Request) -> Optional[EmailClient]:
    return getattr(request.app.state, "email_client", None)


def get_validation_service(request: Request) -> ValidationService:
    """Get validation service from app state"""
    return request.app.state.validation_service


def get_current_user(
    request: Request,
    identity: CurrentUser = Depends(resolve_identity),
    session: Session = Depends(get_session),
    now: datetime = Depends(get_now),
) -> CurrentUser:
    """Authenticated caller; also refreshes the user directory entry"""
    touch_user(session, identity.uid, identity.email, now)
    request.state.user_id = identity.uid
    return identity


def require_super_admin(
    user: CurrentUser = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    if not is_super_admin(user.email, settings.super_admins):
        raise ForbiddenError("Super admin access required")
    return user
