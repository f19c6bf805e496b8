"""Application-level exception types.

Domain errors shared by the rule loader, the counter store adapters and the
HTTP layer so that failures are logged and rendered consistently.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    code: str
    message: str
    hint: str
    rule_index: int
    field: str
    backend: str
    operation: str
    original_error_type: str
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class RuleConfigurationError(ValidationAppError):
    """Raised when the configured rate limit rules are invalid."""


class CounterStoreError(AppError):
    """Raised when the counter store rejects or fails an operation."""


class CounterStoreUnavailableError(CounterStoreError):
    """Raised when the counter store cannot be reached or times out."""
