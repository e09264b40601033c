"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build a fresh instance.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from contact_relay.api.routes import contact as contact_routes
from contact_relay.api.routes import contact_router, health_router
from contact_relay.core.config import settings
from contact_relay.core.cors import setup_cors
from contact_relay.core.exception_handlers import setup_exception_handlers
from contact_relay.core.logging import configure_logging
from contact_relay.core.middleware import request_id_middleware
from contact_relay.core.openapi import apply_openapi_customizations

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info(
        "app.startup",
        extra={
            "app_env": settings.app_env,
            "mail_provider": settings.mail.provider,
            "auto_reply_enabled": settings.mail.auto_reply_enabled,
            "frontend_origin": settings.app.frontend_origin,
        },
    )
    yield
    service = contact_routes._contact_service
    if service is not None:
        await service.transport.aclose()
    logger.info("app.shutdown")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Contact Relay API",
        description=(
            "Accepts contact-form submissions (name, email, message), validates "
            "them, rate limits per client IP and relays them to the site owner "
            "by e-mail."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        lifespan=lifespan,
    )

    # Middleware: the last one added runs first
    setup_cors(app)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(contact_router)

    apply_openapi_customizations(app)

    return app
