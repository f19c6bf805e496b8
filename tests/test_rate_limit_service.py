"""Tests for multi-descriptor admission decisions."""

from unittest.mock import Mock

import pytest

from ratelimiter.adapters.counter_store.in_memory import InMemoryCounterStore
from ratelimiter.core.errors import CounterStoreUnavailableError
from ratelimiter.domain.models import RateLimitRule, RateLimitTimeInterval, RequestDescriptor
from ratelimiter.services.rate_limit_service import RateLimitService, Verdict
from ratelimiter.services.rule_resolver import RuleResolver
from ratelimiter.services.window_limiter import WindowLimiter

MINUTE = RateLimitTimeInterval.MINUTE

WILDCARD = RateLimitRule(MINUTE, 100)
LOGIN = RateLimitRule(MINUTE, 2, request_type="login")
UPLOAD = RateLimitRule(MINUTE, 1, request_type="upload")


def _service(rules, store, clock) -> RateLimitService:
    return RateLimitService(RuleResolver(rules), WindowLimiter(store), clock=clock)


def test_three_sequential_requests_with_allowance_two(store, clock) -> None:
    service = _service([LOGIN], store, clock)
    descriptors = {RequestDescriptor(request_type="login")}

    verdicts = [service.evaluate(descriptors).verdict for _ in range(3)]

    assert verdicts == [Verdict.ADMIT, Verdict.ADMIT, Verdict.DENY]


def test_login_descriptor_uses_type_rule_not_wildcard(store, clock) -> None:
    service = _service([WILDCARD, LOGIN], store, clock)
    descriptor = RequestDescriptor(request_type="login")

    decisions = [service.evaluate([descriptor]) for _ in range(3)]

    assert all(d.evaluations[0].rule is LOGIN for d in decisions)
    assert decisions[-1].should_limit is True


def test_unmatched_descriptors_are_skipped_and_admitted(store, clock) -> None:
    service = _service([LOGIN], store, clock)
    descriptor = RequestDescriptor(request_type="search")

    decision = service.evaluate([descriptor])

    assert decision.verdict is Verdict.ADMIT
    assert decision.evaluations == ()
    assert decision.skipped == (descriptor,)
    assert len(store) == 0


def test_empty_descriptor_set_is_admitted(store, clock) -> None:
    assert _service([WILDCARD], store, clock).evaluate([]).verdict is Verdict.ADMIT


def test_deny_short_circuits_remaining_descriptors(store, clock) -> None:
    service = _service([LOGIN, UPLOAD], store, clock)
    upload = RequestDescriptor(request_type="upload")
    login = RequestDescriptor(request_type="login")

    # Exhaust the upload allowance
    assert service.evaluate([upload]).verdict is Verdict.ADMIT

    decision = service.evaluate([upload, login])

    assert decision.verdict is Verdict.DENY
    assert decision.denied_by.descriptor == upload
    assert decision.denied_by.rule is UPLOAD
    assert [e.descriptor for e in decision.evaluations] == [upload]

    login_key = WindowLimiter(store).build_key(LOGIN, login, clock.return_value)
    assert store.get(login_key) is None


def test_descriptors_before_the_deny_are_counted(store, clock) -> None:
    service = _service([LOGIN, UPLOAD], store, clock)
    upload = RequestDescriptor(request_type="upload")
    login = RequestDescriptor(request_type="login")
    service.evaluate([upload])

    decision = service.evaluate([login, upload])

    assert decision.verdict is Verdict.DENY
    assert decision.evaluations[0].count == 1
    assert decision.denied_by.descriptor == upload


def test_duplicate_descriptors_are_counted_once(store, clock) -> None:
    service = _service([LOGIN], store, clock)
    login = RequestDescriptor(request_type="login")

    decision = service.evaluate([login, RequestDescriptor(request_type="login")])

    assert len(decision.evaluations) == 1
    assert decision.evaluations[0].count == 1


def test_all_descriptors_share_one_instant() -> None:
    store = Mock()
    store.increment_with_expiry.return_value = 1
    clock = Mock(side_effect=[59.0, 61.0])
    service = RateLimitService(RuleResolver([WILDCARD, LOGIN]), WindowLimiter(store), clock=clock)

    decision = service.evaluate(
        [RequestDescriptor(request_type="login"), RequestDescriptor(request_type="upload")]
    )

    assert clock.call_count == 1
    assert {e.key.rsplit(":", 1)[1] for e in decision.evaluations} == {"0"}


def test_admit_decision_has_no_denied_by(store, clock) -> None:
    decision = _service([WILDCARD], store, clock).evaluate([RequestDescriptor()])
    assert decision.should_limit is False
    assert decision.denied_by is None


def test_should_limit_shortcut(store, clock) -> None:
    service = _service([UPLOAD], store, clock)
    descriptors = [RequestDescriptor(request_type="upload")]

    assert service.should_limit(descriptors) is False
    assert service.should_limit(descriptors) is True


def test_store_unavailability_aborts_evaluation(clock) -> None:
    store = Mock()
    store.increment_with_expiry.side_effect = CounterStoreUnavailableError(
        code="counter_store_unavailable", message="down"
    )
    service = RateLimitService(RuleResolver([LOGIN]), WindowLimiter(store), clock=clock)

    with pytest.raises(CounterStoreUnavailableError):
        service.evaluate([RequestDescriptor(request_type="login")])


def test_unmatched_descriptors_never_reach_the_store(clock) -> None:
    store = Mock()
    service = RateLimitService(RuleResolver([LOGIN]), WindowLimiter(store), clock=clock)

    service.evaluate([RequestDescriptor(request_type="search")])

    store.increment_with_expiry.assert_not_called()


def test_new_window_resets_verdict(clock) -> None:
    store = InMemoryCounterStore(clock=clock)
    service = _service([UPLOAD], store, clock)
    descriptors = [RequestDescriptor(request_type="upload")]

    assert service.should_limit(descriptors) is False
    assert service.should_limit(descriptors) is True

    clock.return_value += 60
    assert service.should_limit(descriptors) is False
