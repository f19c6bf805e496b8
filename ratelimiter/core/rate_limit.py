"""Process-wide wiring of the rate limit service.

Rules are loaded and the counter store is connected once; the resulting
service is shared read-only by all requests. If the relevant configuration
changes (primarily in tests), the service is rebuilt on next access.
"""

from __future__ import annotations

import logging

from ratelimiter.adapters.counter_store import create_counter_store
from ratelimiter.core.config import settings
from ratelimiter.services.rate_limit_service import RateLimitService
from ratelimiter.services.rule_loader import load_rules
from ratelimiter.services.rule_resolver import RuleResolver
from ratelimiter.services.window_limiter import WindowLimiter

logger = logging.getLogger(__name__)


_service: RateLimitService | None = None
_service_config: tuple | None = None


def _current_config() -> tuple:
    return (
        settings.app.rules_json,
        settings.app.rules_file,
        settings.app.counter_store,
        settings.app.key_prefix,
        settings.redis.url,
    )


def build_rate_limit_service() -> RateLimitService:
    """Build a service from the current settings.

    Raises:
        RuleConfigurationError: If the configured rules are invalid.
        ValidationAppError: If the counter store backend is unknown.
    """
    rules = load_rules(settings.app)
    store = create_counter_store(settings)
    logger.info(
        "rate_limit.service_built",
        extra={"rule_count": len(rules), "backend": settings.app.counter_store},
    )
    return RateLimitService(
        RuleResolver(rules),
        WindowLimiter(store, key_prefix=settings.app.key_prefix),
    )


def get_rate_limit_service() -> RateLimitService:
    """Return the process-wide RateLimitService (FastAPI dependency)."""

    global _service, _service_config

    config = _current_config()
    if _service is None or _service_config != config:
        _service = build_rate_limit_service()
        _service_config = config

    return _service

