# visibility.py
# Conditional visibility for form nodes.
#
# Pure functions over (node, current values). Nothing here raises: a
# condition that cannot be evaluated hides its node, it never breaks the
# request that asked.

import logging
from enum import Enum
from typing import Any, Iterable, Mapping

from dynamic_form.models import Element, Node

logger = logging.getLogger(__name__)

_MISSING = object()


def lookup(values: Mapping[Any, Any], name: Any, default: Any = None) -> Any:
    """
    Fetch `name` from `values`, accepting plain-string keys or string-valued
    enum keys interchangeably. Never creates anything; a miss returns
    `default`.
    """
    if not isinstance(values, Mapping):
        return default
    if name in values:
        return values[name]
    if isinstance(name, Enum) and name.value in values:
        return values[name.value]
    if isinstance(name, str):
        for key in values:
            if isinstance(key, Enum) and key.value == name:
                return values[key]
    return default


def _has_value(value: Any) -> bool:
    return value is not None and value != ""


def _same(current: Any, expected: Any) -> bool:
    return type(current) is type(expected) and current == expected


def evaluate_condition(condition: Any, values: Mapping[Any, Any]) -> bool:
    """
    Evaluate a single {field, operator, value} condition.

    equals — the current value has the same type and value as `value`.
    valid  — the current value is present and not an empty string. The
             referenced field's own validation rules are not re-run.

    Unknown operators and malformed shapes evaluate to False.
    """
    if not isinstance(condition, Mapping):
        return False
    try:
        field_name = condition.get("field")
        operator = condition.get("operator")
        if field_name is None:
            return False

        current = lookup(values, field_name, _MISSING)
        if current is _MISSING:
            return False

        if operator == "equals":
            return current is not None and _same(current, condition.get("value"))
        if operator == "valid":
            return _has_value(current)
        return False
    except Exception as exc:
        logger.debug("Condition %r could not be evaluated: %s", condition, exc)
        return False


def is_visible(node: Node, values: Mapping[Any, Any]) -> bool:
    """True when the node has no conditions or every condition holds."""
    conditions = getattr(node, "visible_when", None)
    if conditions is None or conditions == []:
        return True
    if isinstance(conditions, list):
        return all(evaluate_condition(c, values) for c in conditions)
    return evaluate_condition(conditions, values)


def visible_items(nodes: Iterable[Node] | None, values: Mapping[Any, Any]) -> list[Node]:
    """
    Return the visible subset of `nodes`, recursing into element children.
    Elements whose children change are copied; the input tree is untouched.
    """
    shown: list[Node] = []
    for node in nodes or []:
        if not is_visible(node, values):
            continue
        if isinstance(node, Element) and node.items:
            children = visible_items(node.items, values)
            if len(children) != len(node.items):
                node = node.model_copy(update={"items": children})
        shown.append(node)
    return shown
