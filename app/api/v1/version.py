"""Version metadata endpoint."""

from fastapi import APIRouter, Depends

from ...core.config import Settings, get_settings


router = APIRouter()


@router.get("/version")
async def version(settings: Settings = Depends(get_settings)) -> dict:
    """Return service name, version and whether email delivery is wired up."""

    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "env": settings.app_env,
        "email_enabled": settings.email_enabled,
    }
