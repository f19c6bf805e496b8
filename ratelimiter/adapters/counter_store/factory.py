"""Factory for the configured counter store backend."""

from ratelimiter.adapters.counter_store.base import AbstractCounterStore
from ratelimiter.adapters.counter_store.in_memory import InMemoryCounterStore
from ratelimiter.adapters.counter_store.redis_store import RedisCounterStore
from ratelimiter.core.config import Settings, settings as default_settings
from ratelimiter.core.errors import ValidationAppError


def create_counter_store(cfg: Settings | None = None) -> AbstractCounterStore:
    """Instantiate the counter store named by ``APP_COUNTER_STORE``.

    Args:
        cfg: Settings to read; defaults to the global settings.

    Returns:
        AbstractCounterStore: Configured store.

    Raises:
        ValidationAppError: If the backend name is unknown.
    """
    cfg = cfg or default_settings
    backend = cfg.app.counter_store.lower()

    if backend == "memory":
        return InMemoryCounterStore()

    if backend == "redis":
        return RedisCounterStore.from_url(
            cfg.redis.url,
            socket_timeout=cfg.redis.socket_timeout_seconds,
            socket_connect_timeout=cfg.redis.socket_connect_timeout_seconds,
        )

    raise ValidationAppError(
        code="counter_store_unknown_backend",
        message=(
            f"Unknown counter store backend: '{backend}'. Supported backends: memory, redis"
        ),
    )
