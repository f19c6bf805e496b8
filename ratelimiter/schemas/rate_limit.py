"""Pydantic schemas for the rate limit evaluation endpoint."""

from __future__ import annotations

import math
from typing import List

from pydantic import BaseModel, Field

from ratelimiter.domain.models import RateLimitTimeInterval, RequestDescriptor
from ratelimiter.services.rate_limit_service import RateLimitDecision, Verdict


class RequestDescriptorIn(BaseModel):
    """One descriptor of the request being checked."""

    account_id: str | None = Field(None, description="Account identifier, if known.")
    client_ip: str | None = Field(None, description="Client IP address, if known.")
    request_type: str | None = Field(None, description="Request type, e.g. 'login'.")

    def to_descriptor(self) -> RequestDescriptor:
        return RequestDescriptor(
            account_id=self.account_id,
            client_ip=self.client_ip,
            request_type=self.request_type,
        )


class EvaluateRequest(BaseModel):
    """Descriptors of one logical request, evaluated in the given order."""

    descriptors: List[RequestDescriptorIn] = Field(
        ...,
        min_length=1,
        description="Independent descriptors; the request is denied if any of them is over its limit.",
    )


class MatchedRule(BaseModel):
    account_id: str | None = None
    client_ip: str | None = None
    request_type: str | None = None
    time_interval: RateLimitTimeInterval
    allowed_number_of_requests: int


class DeniedBy(BaseModel):
    """Descriptor and rule that triggered the denial."""

    descriptor: RequestDescriptorIn
    rule: MatchedRule
    count: int = Field(..., description="Counter value observed in the current window.")
    reset_at: int = Field(..., description="UNIX epoch seconds when the window ends.")
    retry_after_seconds: int = Field(..., description="Seconds until the window ends.")


class EvaluateResponse(BaseModel):
    should_limit: bool
    verdict: Verdict
    denied_by: DeniedBy | None = None
    degraded: bool = Field(
        False,
        description="True when the counter store was unavailable and the request was admitted by policy.",
    )

    @classmethod
    def from_decision(cls, decision: RateLimitDecision, *, now: float) -> "EvaluateResponse":
        denied_by = None
        evaluation = decision.denied_by
        if evaluation is not None:
            rule = evaluation.rule
            denied_by = DeniedBy(
                descriptor=RequestDescriptorIn(
                    account_id=evaluation.descriptor.account_id,
                    client_ip=evaluation.descriptor.client_ip,
                    request_type=evaluation.descriptor.request_type,
                ),
                rule=MatchedRule(
                    account_id=rule.account_id,
                    client_ip=rule.client_ip,
                    request_type=rule.request_type,
                    time_interval=rule.time_interval,
                    allowed_number_of_requests=rule.allowed_number_of_requests,
                ),
                count=evaluation.count,
                reset_at=evaluation.reset_at,
                retry_after_seconds=max(0, int(math.ceil(evaluation.reset_at - now))),
            )
        return cls(
            should_limit=decision.should_limit,
            verdict=decision.verdict,
            denied_by=denied_by,
        )

    @classmethod
    def degraded_admit(cls) -> "EvaluateResponse":
        return cls(should_limit=False, verdict=Verdict.ADMIT, degraded=True)
