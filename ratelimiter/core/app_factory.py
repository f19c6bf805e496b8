"""Application factory for the rate limiter service.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from __future__ import annotations

from fastapi import FastAPI

from ratelimiter import __version__
from ratelimiter.api.routes import health_router, rate_limit_router
from ratelimiter.core.config import settings
from ratelimiter.core.exception_handlers import setup_exception_handlers
from ratelimiter.core.logging import configure_logging
from ratelimiter.core.middleware import request_id_middleware
from ratelimiter.core.rate_limit import get_rate_limit_service


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    # Invalid rules must stop the process here, not surface per request
    get_rate_limit_service()

    app = FastAPI(
        title="Rate Limiter",
        description=(
            "Fixed-window rate limit decisions shared across service instances. "
            "Resolves the most specific configured rule for each request "
            "descriptor and counts it atomically in a shared counter store."
        ),
        version=__version__,
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(rate_limit_router, prefix="/v1")
    app.include_router(health_router)

    return app
