"""Loading and validation of the configured rate limit rules.

Rules are supplied as a JSON array, either inline (``APP_RULES_JSON``) or in a
file (``APP_RULES_FILE``). Both snake_case keys and the camelCase keys used by
existing deployments are accepted::

    [
      {"requestType": "login", "timeInterval": "MINUTE", "allowedNumberOfRequests": 2},
      {"time_interval": "HOUR", "allowed_number_of_requests": 100}
    ]

Any invalid entry aborts loading with RuleConfigurationError, so a bad
configuration fails at startup rather than while serving requests.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from ratelimiter.core.config import AppSettings
from ratelimiter.core.errors import RuleConfigurationError
from ratelimiter.domain.models import RateLimitRule, RateLimitTimeInterval

logger = logging.getLogger(__name__)


class RateLimitRuleConfig(BaseModel):
    """One rule entry as it appears in configuration."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    account_id: str | None = Field(None, alias="accountId")
    client_ip: str | None = Field(None, alias="clientIp")
    request_type: str | None = Field(None, alias="requestType")
    time_interval: RateLimitTimeInterval = Field(..., alias="timeInterval")
    allowed_number_of_requests: int = Field(..., alias="allowedNumberOfRequests", ge=1, strict=True)

    @field_validator("time_interval", mode="before")
    @classmethod
    def _normalize_interval(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    def to_rule(self) -> RateLimitRule:
        return RateLimitRule(
            account_id=self.account_id,
            client_ip=self.client_ip,
            request_type=self.request_type,
            time_interval=self.time_interval,
            allowed_number_of_requests=self.allowed_number_of_requests,
        )


_RULES_ADAPTER = TypeAdapter(list[RateLimitRuleConfig])


def parse_rules(raw_json: str | bytes) -> tuple[RateLimitRule, ...]:
    """Parse a JSON array of rules.

    Args:
        raw_json: JSON document holding the rule array.

    Returns:
        Immutable tuple of rules, in configuration order.

    Raises:
        RuleConfigurationError: If the document or any rule is invalid.
    """
    try:
        configs = _RULES_ADAPTER.validate_json(raw_json)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = first.get("loc", ())
        details = {"hint": first.get("msg", ""), "context": {"error_count": exc.error_count()}}
        if location and isinstance(location[0], int):
            details["rule_index"] = location[0]
        if len(location) > 1:
            details["field"] = str(location[1])
        raise RuleConfigurationError(
            code="rule_config_invalid",
            message="Rate limit rule configuration is invalid",
            details=details,
        ) from exc

    return tuple(config.to_rule() for config in configs)


def load_rules(app_settings: AppSettings) -> tuple[RateLimitRule, ...]:
    """Load rules from inline JSON or a file, as configured.

    An empty tuple is returned when neither source is configured; every
    request is then admitted.
    """
    if app_settings.rules_json:
        rules = parse_rules(app_settings.rules_json)
        source = "inline"
    elif app_settings.rules_file:
        path = Path(app_settings.rules_file)
        try:
            raw = path.read_bytes()
        except OSError as exc:
            raise RuleConfigurationError(
                code="rule_config_unreadable",
                message=f"Cannot read rules file: {path}",
                details={"hint": str(exc)},
            ) from exc
        rules = parse_rules(raw)
        source = "file"
    else:
        logger.warning("rate_limit.rules_missing")
        return ()

    logger.info("rate_limit.rules_loaded", extra={"rule_count": len(rules), "source": source})
    return rules
