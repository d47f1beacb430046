"""API key verification and caller identity."""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status
from pydantic import BaseModel

from ..api.errors import UnauthenticatedError
from .config import get_settings


class CurrentUser(BaseModel):
    uid: str
    email: Optional[str] = None


async def enforce_api_key(x_api_key: str = Header(default=None)) -> None:
    settings = get_settings()
    expected = settings.api_key
    if expected and x_api_key != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )


async def resolve_identity(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    x_user_email: Optional[str] = Header(default=None, alias="X-User-Email"),
) -> CurrentUser:
    """Identity forwarded by the auth gateway; no identity, no data access."""
    uid = (x_user_id or "").strip()
    if not uid:
        raise UnauthenticatedError()
    email = (x_user_email or "").strip() or None
    return CurrentUser(uid=uid, email=email)
