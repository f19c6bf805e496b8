"""Tests for rule configuration parsing and validation."""

import json
from pathlib import Path

import pytest

from ratelimiter.core.config import AppSettings
from ratelimiter.core.errors import RuleConfigurationError
from ratelimiter.domain.models import RateLimitRule, RateLimitTimeInterval
from ratelimiter.services.rule_loader import load_rules, parse_rules


def test_parses_camel_case_rules() -> None:
    raw = json.dumps(
        [
            {"requestType": "login", "timeInterval": "MINUTE", "allowedNumberOfRequests": 2},
            {"accountId": "u1", "clientIp": "10.0.0.1", "timeInterval": "HOUR", "allowedNumberOfRequests": 50},
        ]
    )

    rules = parse_rules(raw)

    assert rules == (
        RateLimitRule(RateLimitTimeInterval.MINUTE, 2, request_type="login"),
        RateLimitRule(RateLimitTimeInterval.HOUR, 50, account_id="u1", client_ip="10.0.0.1"),
    )


def test_parses_snake_case_and_lowercase_interval() -> None:
    rules = parse_rules('[{"time_interval": "minute", "allowed_number_of_requests": 3, "account_id": ""}]')

    assert rules[0].time_interval is RateLimitTimeInterval.MINUTE
    assert rules[0].constrains_account_id is False


def test_rules_are_immutable_tuple() -> None:
    assert isinstance(parse_rules("[]"), tuple)


@pytest.mark.parametrize(
    "entry,field",
    [
        ({"timeInterval": "MINUTE", "allowedNumberOfRequests": 0}, "allowedNumberOfRequests"),
        ({"timeInterval": "MINUTE", "allowedNumberOfRequests": -5}, "allowedNumberOfRequests"),
        ({"timeInterval": "MINUTE", "allowedNumberOfRequests": "10"}, "allowedNumberOfRequests"),
        ({"timeInterval": "DAY", "allowedNumberOfRequests": 10}, "timeInterval"),
        ({"allowedNumberOfRequests": 10}, "timeInterval"),
    ],
)
def test_invalid_rule_fails_fast(entry: dict, field: str) -> None:
    raw = json.dumps([{"timeInterval": "HOUR", "allowedNumberOfRequests": 1}, entry])

    with pytest.raises(RuleConfigurationError) as exc_info:
        parse_rules(raw)

    assert exc_info.value.code == "rule_config_invalid"
    assert exc_info.value.details["rule_index"] == 1
    assert exc_info.value.details["field"] == field


def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(RuleConfigurationError):
        parse_rules('[{"timeInterval": "HOUR", "allowedNumberOfRequests": 1, "burst": 5}]')


def test_malformed_json_is_rejected() -> None:
    with pytest.raises(RuleConfigurationError):
        parse_rules("[{not json")


def test_rule_constructor_validates_allowance() -> None:
    with pytest.raises(RuleConfigurationError):
        RateLimitRule(RateLimitTimeInterval.MINUTE, 0)


def test_rule_constructor_validates_interval() -> None:
    with pytest.raises(RuleConfigurationError):
        RateLimitRule("WEEK", 1)  # type: ignore[arg-type]


def test_load_inline_rules_take_precedence(tmp_path: Path) -> None:
    rules_file = tmp_path / "rules.json"
    rules_file.write_text('[{"timeInterval": "HOUR", "allowedNumberOfRequests": 9}]')
    app_settings = AppSettings(
        rules_json='[{"timeInterval": "MINUTE", "allowedNumberOfRequests": 1}]',
        rules_file=str(rules_file),
    )

    rules = load_rules(app_settings)

    assert [r.allowed_number_of_requests for r in rules] == [1]


def test_load_rules_from_file(tmp_path: Path) -> None:
    rules_file = tmp_path / "rules.json"
    rules_file.write_text('[{"requestType": "login", "timeInterval": "HOUR", "allowedNumberOfRequests": 9}]')

    rules = load_rules(AppSettings(rules_json=None, rules_file=str(rules_file)))

    assert rules[0].request_type == "login"


def test_missing_rules_file_is_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(RuleConfigurationError) as exc_info:
        load_rules(AppSettings(rules_json=None, rules_file=str(tmp_path / "absent.json")))

    assert exc_info.value.code == "rule_config_unreadable"


def test_no_rules_configured() -> None:
    assert load_rules(AppSettings(rules_json=None, rules_file=None)) == ()
