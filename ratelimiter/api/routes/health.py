from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ratelimiter.core.rate_limit import get_rate_limit_service
from ratelimiter.services.rate_limit_service import RateLimitService

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe for load balancers and orchestrators.

    Does not touch the counter store, so a store outage does not take the
    service out of rotation when it runs fail-open.
    """

    return {"status": "ok"}


@router.get("/ready")
def readiness_check(
    service: Annotated[RateLimitService, Depends(get_rate_limit_service)],
) -> JSONResponse:
    """Readiness check: 200 when the counter store answers, 503 otherwise."""

    if service.store_available():
        return JSONResponse(status_code=200, content={"status": "ready"})
    return JSONResponse(status_code=503, content={"status": "counter_store_unavailable"})
