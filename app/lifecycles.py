"""Application lifespan management."""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from .core.config import get_settings
from .core.logging import get_logger
from .services.mailer import PostmarkClient
from .services.validation import ValidationService
from .storage.database import create_db_engine, create_session_factory, init_db
from .utils.clock import utcnow

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("application_startup", env=settings.app_env)

    engine = create_db_engine(settings.database_url)
    init_db(engine)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.clock = utcnow

    http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.email_timeout_seconds))
    app.state.http_client = http_client

    if settings.email_enabled:
        app.state.email_client = PostmarkClient(
            api_token=settings.postmark_api_token,
            http_client=http_client,
            api_url=settings.postmark_api_url,
            timeout=settings.email_timeout_seconds,
        )
    else:
        app.state.email_client = None
        logger.warning("email_delivery_disabled")

    app.state.validation_service = ValidationService()

    try:
        yield
    finally:
        logger.info("application_shutdown")
        await http_client.aclose()
        engine.dispose()
