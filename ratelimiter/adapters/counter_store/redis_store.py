"""Redis-backed counter store shared by every service instance.

The increment and the first-time expiry run inside one Lua script, so Redis
executes them as a single atomic step: concurrent first requests in a window
can neither both initialize the counter nor leave it without a TTL.
"""

from __future__ import annotations

import logging

import redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ratelimiter.adapters.counter_store.base import AbstractCounterStore
from ratelimiter.core.errors import CounterStoreError, CounterStoreUnavailableError

logger = logging.getLogger(__name__)


# KEYS[1] = counter key, ARGV[1] = ttl seconds
INCREMENT_WITH_EXPIRY_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
if count == 1 or redis.call('TTL', KEYS[1]) == -1 then
    redis.call('EXPIRE', KEYS[1], tonumber(ARGV[1]))
end
return count
"""


class RedisCounterStore(AbstractCounterStore):
    """Counter store running an atomic increment script on Redis.

    The client should be created with socket timeouts; a timeout surfaces as
    :class:`CounterStoreUnavailableError` like any connectivity failure.
    """

    def __init__(self, client: redis.Redis) -> None:
        self._client = client
        self._increment_script = client.register_script(INCREMENT_WITH_EXPIRY_SCRIPT)

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        socket_timeout: float,
        socket_connect_timeout: float,
    ) -> "RedisCounterStore":
        client = redis.Redis.from_url(
            url,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
        )
        return cls(client)

    def increment_with_expiry(self, key: str, ttl_seconds: int) -> int:
        if not key:
            raise ValueError("key must be a non-empty string")
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        try:
            result = self._increment_script(keys=[key], args=[ttl_seconds])
        except (RedisConnectionError, RedisTimeoutError) as exc:
            logger.warning(
                "counter_store.unavailable",
                extra={"backend": "redis", "error_type": type(exc).__name__},
            )
            raise CounterStoreUnavailableError(
                code="counter_store_unavailable",
                message="Counter store is unavailable",
                details={
                    "backend": "redis",
                    "operation": "increment_with_expiry",
                    "original_error_type": type(exc).__name__,
                },
            ) from exc
        except RedisError as exc:
            logger.error(
                "counter_store.error",
                extra={"backend": "redis", "error_type": type(exc).__name__},
            )
            raise CounterStoreError(
                code="counter_store_error",
                message="Counter store rejected the operation",
                details={
                    "backend": "redis",
                    "operation": "increment_with_expiry",
                    "original_error_type": type(exc).__name__,
                },
            ) from exc

        return int(result)

    def ping(self) -> bool:
        """Return True when Redis answers, False on any Redis failure."""
        try:
            return bool(self._client.ping())
        except RedisError as exc:
            logger.warning(
                "counter_store.ping_failed",
                extra={"backend": "redis", "error_type": type(exc).__name__},
            )
            return False
