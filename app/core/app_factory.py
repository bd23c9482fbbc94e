"""Application factory for FastAPI app.

Centralizes app construction (metadata, context, middleware, handlers,
routers) so tests can build an app around their own ``AppContext``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.routes import files_router, health_router, uploads_router
from app.core.config import settings
from app.core.context import AppContext, build_app_context
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import rate_limit_middleware

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def create_app(context: AppContext | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        context: Collaborators to serve requests with. Built from settings
            (storage singleton, sliding-window limiter, in-memory uploads)
            when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.

    Raises:
        ValidationAppError: If the storage configuration is incomplete
            (``storage_config_missing``) or names an unknown provider.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Blog Media API",
        description=(
            "Media layer for a blog CMS: uploads stored through a pluggable "
            "object storage adapter (local, memory, S3, Cloudflare R2, Google "
            "Cloud Storage), public file delivery with immutable caching, and "
            "per-client sliding-window rate limiting."
        ),
        version="0.1.0",
        debug=settings.app.debug,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    app.state.context = context or build_app_context(settings)
    logger.info(
        "app.created",
        extra={
            "storage_provider": app.state.context.storage.provider,
            "rate_limit_enabled": settings.app.rate_limit_enabled,
        },
    )

    # Middleware (last registered runs first, so request ids wrap 429s too)
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(uploads_router, prefix=API_PREFIX)
    app.include_router(files_router, prefix=API_PREFIX)
    app.include_router(health_router)

    # OpenAPI customizations (tags, 429 responses)
    apply_openapi_customizations(app)

    return app
