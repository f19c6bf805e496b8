"""Value objects shared by rule resolution and window counting."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ratelimiter.core.errors import RuleConfigurationError


class RateLimitTimeInterval(str, Enum):
    """Fixed window length a rule counts requests over."""

    MINUTE = "MINUTE"
    HOUR = "HOUR"

    @property
    def seconds(self) -> int:
        return _INTERVAL_SECONDS[self]

    def window_id(self, now: float) -> int:
        """Return the absolute window number containing ``now``.

        Windows are numbered from the UNIX epoch, so a window id is never
        reused: the minute at 10:05 today and at 11:05 today get different ids.

        Args:
            now: UNIX time in seconds.
        """
        return int(now // self.seconds)

    def window_reset_at(self, now: float) -> int:
        """UNIX epoch seconds at which the window containing ``now`` ends."""
        return (self.window_id(now) + 1) * self.seconds


_INTERVAL_SECONDS = {
    RateLimitTimeInterval.MINUTE: 60,
    RateLimitTimeInterval.HOUR: 3600,
}


def is_wildcard(matcher: str | None) -> bool:
    """True when a rule matcher is absent or blank."""
    return matcher is None or not matcher.strip()


@dataclass(frozen=True)
class RequestDescriptor:
    """Identifying attributes of one inbound request.

    A ``None`` attribute means the dimension is not specified for the request.
    """

    account_id: str | None = None
    client_ip: str | None = None
    request_type: str | None = None


@dataclass(frozen=True)
class RateLimitRule:
    """A configured limit: optional matchers, a window and an allowance.

    Matchers that are ``None`` or blank act as wildcards.
    """

    time_interval: RateLimitTimeInterval
    allowed_number_of_requests: int
    account_id: str | None = None
    client_ip: str | None = None
    request_type: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.time_interval, RateLimitTimeInterval):
            raise RuleConfigurationError(
                code="rule_invalid_interval",
                message=f"Unknown time interval: {self.time_interval!r}",
                details={"field": "time_interval"},
            )
        if (
            isinstance(self.allowed_number_of_requests, bool)
            or not isinstance(self.allowed_number_of_requests, int)
            or self.allowed_number_of_requests < 1
        ):
            raise RuleConfigurationError(
                code="rule_invalid_allowance",
                message="allowed_number_of_requests must be a positive integer",
                details={"field": "allowed_number_of_requests"},
            )

    @property
    def constrains_account_id(self) -> bool:
        return not is_wildcard(self.account_id)

    @property
    def constrains_client_ip(self) -> bool:
        return not is_wildcard(self.client_ip)

    @property
    def constrains_request_type(self) -> bool:
        return not is_wildcard(self.request_type)

    @property
    def constrained_dimensions(self) -> int:
        return (
            self.constrains_account_id
            + self.constrains_client_ip
            + self.constrains_request_type
        )
