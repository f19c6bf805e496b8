"""Fixed-window counting of a matched rule against the shared counter store.

Key layout::

    <prefix>[:type=<v>][:account=<v>][:ip=<v>]:<INTERVAL>:<window_id>

Only dimensions the rule constrains appear in the key, so every descriptor
matching the same rule in the same window shares one counter. Values are
percent-encoded, which keeps ``:`` out of every segment and makes the layout
injective. ``window_id`` is the absolute epoch window number, so keys of
different real windows never collide.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import quote

from ratelimiter.adapters.counter_store.base import AbstractCounterStore
from ratelimiter.core.logging import hash_identifier
from ratelimiter.domain.models import RateLimitRule, RequestDescriptor

logger = logging.getLogger(__name__)

KEY_DELIMITER = ":"


@dataclass(frozen=True)
class DescriptorEvaluation:
    """Outcome of counting one descriptor under its matched rule.

    Attributes:
        descriptor: The evaluated descriptor.
        rule: Rule the descriptor resolved to.
        key: Window counter key that was incremented.
        count: Counter value observed after the increment.
        should_limit: True when ``count`` exceeds the rule's allowance.
        reset_at: UNIX epoch seconds when the window ends.
    """

    descriptor: RequestDescriptor
    rule: RateLimitRule
    key: str
    count: int
    should_limit: bool
    reset_at: int

    @property
    def limit(self) -> int:
        return self.rule.allowed_number_of_requests

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)


def _segment(tag: str, value: str) -> str:
    return f"{tag}={quote(value, safe='')}"


class WindowLimiter:
    """Count requests per (rule dimensions, interval, window) key."""

    def __init__(self, store: AbstractCounterStore, *, key_prefix: str = "request") -> None:
        if not key_prefix:
            raise ValueError("key_prefix must be a non-empty string")
        self._store = store
        self._key_prefix = quote(key_prefix, safe="")

    def store_available(self) -> bool:
        return self._store.ping()

    def build_key(self, rule: RateLimitRule, descriptor: RequestDescriptor, now: float) -> str:
        """Build the counter key for ``descriptor`` under ``rule`` at time ``now``."""
        parts = [self._key_prefix]
        if rule.constrains_request_type and descriptor.request_type is not None:
            parts.append(_segment("type", descriptor.request_type))
        if rule.constrains_account_id and descriptor.account_id is not None:
            parts.append(_segment("account", descriptor.account_id))
        if rule.constrains_client_ip and descriptor.client_ip is not None:
            parts.append(_segment("ip", descriptor.client_ip))
        parts.append(rule.time_interval.value)
        parts.append(str(rule.time_interval.window_id(now)))
        return KEY_DELIMITER.join(parts)

    def evaluate(
        self,
        rule: RateLimitRule,
        descriptor: RequestDescriptor,
        now: float,
    ) -> DescriptorEvaluation:
        """Increment the window counter once and compare it with the allowance.

        Store failures propagate unchanged (CounterStoreUnavailableError or
        CounterStoreError); they are never turned into a verdict here.
        """
        interval = rule.time_interval
        key = self.build_key(rule, descriptor, now)
        count = self._store.increment_with_expiry(key, interval.seconds)
        should_limit = count > rule.allowed_number_of_requests

        logger.debug(
            "rate_limit.counted",
            extra={
                "interval": interval.value,
                "count": count,
                "limit": rule.allowed_number_of_requests,
                "should_limit": should_limit,
                "account_hash": hash_identifier(descriptor.account_id),
            },
        )

        return DescriptorEvaluation(
            descriptor=descriptor,
            rule=rule,
            key=key,
            count=count,
            should_limit=should_limit,
            reset_at=interval.window_reset_at(now),
        )
