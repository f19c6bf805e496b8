from __future__ import annotations

import logging
import time
from typing import Annotated

from fastapi import APIRouter, Depends

from ratelimiter.core.config import settings
from ratelimiter.core.errors import CounterStoreUnavailableError
from ratelimiter.core.rate_limit import get_rate_limit_service
from ratelimiter.schemas.rate_limit import EvaluateRequest, EvaluateResponse
from ratelimiter.services.rate_limit_service import RateLimitService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Rate limit"])


@router.post("/rate-limit/evaluate", response_model=EvaluateResponse)
def evaluate(
    payload: EvaluateRequest,
    service: Annotated[RateLimitService, Depends(get_rate_limit_service)],
) -> EvaluateResponse:
    """Decide whether a request must be limited.

    Each descriptor is counted in its matched rule's current window; the
    request is denied as soon as one of them exceeds its allowance.

    When the counter store is unavailable the error propagates as HTTP 503,
    unless ``APP_FAIL_OPEN`` is set, in which case the request is admitted and
    flagged as degraded.
    """
    descriptors = [item.to_descriptor() for item in payload.descriptors]

    try:
        decision = service.evaluate(descriptors)
    except CounterStoreUnavailableError as exc:
        if not settings.app.fail_open:
            raise
        logger.warning(
            "rate_limit.fail_open",
            extra={"error_code": exc.code, "descriptor_count": len(descriptors)},
        )
        return EvaluateResponse.degraded_admit()

    return EvaluateResponse.from_decision(decision, now=time.time())
