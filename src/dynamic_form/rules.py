# rules.py
# Validation rule registry and the built-in rule implementations.
# The validator looks rules up in RULES and never branches on rule types.
#
# A rule receives the cast value and its Validation and returns a list of
# error messages (empty when the value passes). Unknown rule types are
# skipped by the validator.

import re
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from dynamic_form.models import Validation

RuleFn = Callable[[Any, Validation], list[str]]

# local@domain.tld with a single "@" and no whitespace or control characters.
EMAIL_PATTERN = re.compile(
    r"^[^\s@\x00-\x1f\x7f]+@[^\s@\x00-\x1f\x7f]+\.[^\s@\x00-\x1f\x7f]+$"
)


def _bound(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError, OverflowError):
        return None


def _number(raw: Any) -> Decimal | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        number = Decimal(str(raw))
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def _length_unit(value: Any, count: int) -> str:
    if isinstance(value, str):
        return "character" if count == 1 else "characters"
    return "item" if count == 1 else "items"


def _min_length(value: Any, rule: Validation) -> list[str]:
    bound = _bound(rule.value)
    if bound is None or not isinstance(value, (str, list)):
        return []
    if len(value) < bound:
        verb = "be" if isinstance(value, str) else "have"
        return [rule.message or f"should {verb} at least {bound} {_length_unit(value, bound)}"]
    return []


def _max_length(value: Any, rule: Validation) -> list[str]:
    bound = _bound(rule.value)
    if bound is None or not isinstance(value, (str, list)):
        return []
    if len(value) > bound:
        verb = "be" if isinstance(value, str) else "have"
        return [rule.message or f"should {verb} at most {bound} {_length_unit(value, bound)}"]
    return []


def _email_format(value: Any, rule: Validation) -> list[str]:
    if isinstance(value, str) and EMAIL_PATTERN.fullmatch(value):
        return []
    return [rule.message or "has invalid format"]


def _numeric_range(value: Any, rule: Validation) -> list[str]:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return []
    number = _number(value)
    if number is None:
        return []

    errors: list[str] = []
    low, high = _number(rule.min), _number(rule.max)
    if low is not None and number < low:
        errors.append(rule.message or f"must be greater than or equal to {rule.min}")
    if high is not None and number > high:
        errors.append(rule.message or f"must be less than or equal to {rule.max}")
    return errors


RULES: dict[str, RuleFn] = {
    "min_length":    _min_length,
    "max_length":    _max_length,
    "email_format":  _email_format,
    "numeric_range": _numeric_range,
}


def register_rule(name: str) -> Callable[[RuleFn], RuleFn]:
    """
    Decorator adding a custom rule type.

        @register_rule("starts_with")
        def _starts_with(value, rule):
            return [] if str(value).startswith(rule.value) else ["bad prefix"]
    """

    def decorator(fn: RuleFn) -> RuleFn:
        RULES[name] = fn
        return fn

    return decorator


def apply_rule(value: Any, rule: Validation) -> list[str]:
    fn = RULES.get(rule.type)
    if fn is None:
        return []
    return fn(value, rule)
