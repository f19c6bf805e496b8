"""Admission decision for one logical request carrying several descriptors.

Each descriptor is resolved to its most specific rule and counted in the
current window. Evaluation stops at the first descriptor that exceeds its
allowance: counters of the descriptors after it are not incremented. A
descriptor without a matching rule is skipped.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable

from ratelimiter.core.logging import hash_identifier
from ratelimiter.domain.models import RequestDescriptor
from ratelimiter.services.rule_resolver import RuleResolver
from ratelimiter.services.window_limiter import DescriptorEvaluation, WindowLimiter

logger = logging.getLogger(__name__)


class Verdict(str, Enum):
    ADMIT = "ADMIT"
    DENY = "DENY"


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of evaluating all descriptors of a request.

    Attributes:
        verdict: ADMIT or DENY.
        evaluations: Counted descriptors in evaluation order (ends with the
            denying one when the verdict is DENY).
        skipped: Descriptors that matched no rule.
    """

    verdict: Verdict
    evaluations: tuple[DescriptorEvaluation, ...] = ()
    skipped: tuple[RequestDescriptor, ...] = field(default_factory=tuple)

    @property
    def should_limit(self) -> bool:
        return self.verdict is Verdict.DENY

    @property
    def denied_by(self) -> DescriptorEvaluation | None:
        if self.verdict is Verdict.DENY:
            return self.evaluations[-1]
        return None


def _unique(descriptors: Iterable[RequestDescriptor]) -> list[RequestDescriptor]:
    # dict keeps first-seen order while dropping duplicates
    return list(dict.fromkeys(descriptors))


class RateLimitService:
    """Stateless orchestration of rule resolution and window counting."""

    def __init__(
        self,
        resolver: RuleResolver,
        limiter: WindowLimiter,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._resolver = resolver
        self._limiter = limiter
        self._clock = clock

    def store_available(self) -> bool:
        """True when the counter store answers; backs the readiness check."""
        return self._limiter.store_available()

    def evaluate(self, descriptors: Iterable[RequestDescriptor]) -> RateLimitDecision:
        """Evaluate descriptors in the given order, short-circuiting on the first deny.

        Every descriptor is evaluated against the same instant so that all of
        them fall into the same windows.

        Raises:
            CounterStoreUnavailableError: If the counter store cannot be reached.
            CounterStoreError: If the counter store fails the increment.
        """
        now = self._clock()
        evaluations: list[DescriptorEvaluation] = []
        skipped: list[RequestDescriptor] = []

        for descriptor in _unique(descriptors):
            rule = self._resolver.resolve(descriptor)
            if rule is None:
                skipped.append(descriptor)
                continue

            evaluation = self._limiter.evaluate(rule, descriptor, now)
            evaluations.append(evaluation)

            if evaluation.should_limit:
                logger.info(
                    "rate_limit.denied",
                    extra={
                        "interval": rule.time_interval.value,
                        "limit": evaluation.limit,
                        "count": evaluation.count,
                        "request_type": descriptor.request_type,
                        "account_hash": hash_identifier(descriptor.account_id),
                        "client_ip_hash": hash_identifier(descriptor.client_ip),
                    },
                )
                return RateLimitDecision(
                    verdict=Verdict.DENY,
                    evaluations=tuple(evaluations),
                    skipped=tuple(skipped),
                )

        return RateLimitDecision(
            verdict=Verdict.ADMIT,
            evaluations=tuple(evaluations),
            skipped=tuple(skipped),
        )

    def should_limit(self, descriptors: Iterable[RequestDescriptor]) -> bool:
        """True when the request must be rejected."""
        return self.evaluate(descriptors).should_limit
