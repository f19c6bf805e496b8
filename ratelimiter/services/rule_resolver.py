"""Selection of the single most specific rule for a request descriptor.

Specificity is a total order over rules, compared by this key (larger wins):

1. number of constrained dimensions;
2. constrains account id;
3. constrains client ip;
4. constrains request type;
5. earlier position in the configured rule collection.

Because (1) comes first, a rule constraining a strict superset of another
rule's dimensions always wins. The remaining components break ties between
incomparable rules, preferring account over ip over request type and then the
order the rules were defined in.
"""

from __future__ import annotations

from typing import Iterable

from ratelimiter.domain.models import RateLimitRule, RequestDescriptor, is_wildcard


def _dimension_matches(matcher: str | None, value: str | None) -> bool:
    if is_wildcard(matcher):
        return True
    return value is not None and value == matcher


def rule_matches(rule: RateLimitRule, descriptor: RequestDescriptor) -> bool:
    """Return True when every non-wildcard matcher of ``rule`` equals the descriptor value."""
    return (
        _dimension_matches(rule.account_id, descriptor.account_id)
        and _dimension_matches(rule.client_ip, descriptor.client_ip)
        and _dimension_matches(rule.request_type, descriptor.request_type)
    )


def specificity_key(rule: RateLimitRule, position: int) -> tuple[int, bool, bool, bool, int]:
    """Sort key ranking ``rule``; the largest key is the most specific rule."""
    return (
        rule.constrained_dimensions,
        rule.constrains_account_id,
        rule.constrains_client_ip,
        rule.constrains_request_type,
        -position,
    )


class RuleResolver:
    """Resolve descriptors against an immutable rule collection."""

    def __init__(self, rules: Iterable[RateLimitRule]) -> None:
        self._rules: tuple[RateLimitRule, ...] = tuple(rules)

    def resolve(self, descriptor: RequestDescriptor) -> RateLimitRule | None:
        """Return the most specific matching rule, or None when nothing matches."""
        best: RateLimitRule | None = None
        best_key: tuple[int, bool, bool, bool, int] | None = None
        for position, rule in enumerate(self._rules):
            if not rule_matches(rule, descriptor):
                continue
            key = specificity_key(rule, position)
            if best_key is None or key > best_key:
                best, best_key = rule, key
        return best
