"""Application factory for the FastAPI app.

Centralizes app construction (metadata, lifespan, middleware, handlers,
routers) so tests can build isolated instances.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from sales_api.adapters.store.factory import close_sales_store
from sales_api.api.routes import auth_router, health_router, sales_router
from sales_api.core.auth import get_credential_store, get_token_codec
from sales_api.core.config import settings
from sales_api.core.exception_handlers import setup_exception_handlers
from sales_api.core.logging import configure_logging
from sales_api.core.middleware import request_id_middleware
from sales_api.core.rate_limit import close_rate_limiters

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load immutable state at startup; release connections at shutdown.

    The server only leaves the ``yield`` once in-flight requests have drained,
    so counters and queries are never cut off mid-call.
    """
    store = get_credential_store()
    get_token_codec()
    logger.info("app.started", extra={"env": settings.app_env, "user_count": len(store)})
    try:
        yield
    finally:
        await close_rate_limiters()
        await close_sales_store()
        logger.info("app.stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Sales API",
        description=(
            "REST API serving paginated sales records with JWT authentication "
            "and Redis-backed rate limiting. Obtain a token from /login and send "
            "it as 'Authorization: Bearer <token>'."
        ),
        version="1.0.0",
        debug=settings.api.debug,
        lifespan=lifespan,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(auth_router)
    app.include_router(sales_router, prefix="/api")
    app.include_router(health_router)

    return app
