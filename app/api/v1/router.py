"""Versioned API router registration."""

from fastapi import APIRouter

from .admin import router as admin_router
from .budgets import router as budgets_router
from .clients import router as clients_router
from .health import router as health_router
from .imports import router as imports_router
from .invoices import router as invoices_router
from .recurring import router as recurring_router
from .settings import router as settings_router
from .usage import router as usage_router
from .version import router as version_router


def create_v1_router() -> APIRouter:
    """Create and configure v1 API router"""
    router = APIRouter(prefix="/v1")

    router.include_router(health_router, tags=["health"])
    router.include_router(version_router, tags=["health"])
    router.include_router(budgets_router, tags=["budgets"])
    router.include_router(recurring_router, tags=["budgets"])
    router.include_router(clients_router, tags=["clients"])
    router.include_router(invoices_router, tags=["invoices"])
    router.include_router(settings_router, tags=["settings"])
    router.include_router(usage_router, tags=["usage"])
    router.include_router(imports_router, tags=["import"])
    router.include_router(admin_router, tags=["admin"])

    return router
