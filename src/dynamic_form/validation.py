# validation.py
# Builds a validated record from a form description and raw submitted data.
#
# Control flow:
#   flatten → types map → cast present values → required set (own and
#   enclosing elements' visibility against the raw input) → blank check
#   → per-field rules → Changes
#
# Called on every value change, not only on submit: whether a field is
# required depends on what else is filled in right now.

import logging
from collections import defaultdict
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, Field

from dynamic_form.coercion import CastError, build_types_map, cast
from dynamic_form.errors import FormConfigError
from dynamic_form.models import Instance, Node, ensure_unique_names, flatten_fields, walk_fields
from dynamic_form.rules import apply_rule
from dynamic_form.visibility import is_visible, lookup

logger = logging.getLogger(__name__)

BLANK = "can't be blank"
INVALID = "is invalid"

_MISSING = object()


class Changes(BaseModel):
    """Outcome of one validation pass. Never mutates the description."""

    data: dict[str, Any] = Field(default_factory=dict, description="Cast values for present fields.")
    errors: dict[str, list[str]] = Field(default_factory=dict, description="Field name -> messages.")
    required: list[str] = Field(default_factory=list, description="Fields required in this pass.")

    @property
    def valid(self) -> bool:
        return not self.errors

    def merge_errors(self, errors: Mapping[str, Any]) -> "Changes":
        """Return a copy with extra field errors folded in (e.g. from a backend)."""
        merged = {name: list(messages) for name, messages in self.errors.items()}
        for name, messages in errors.items():
            if isinstance(messages, str):
                messages = [messages]
            merged.setdefault(str(name), []).extend(str(m) for m in messages)
        return self.model_copy(update={"errors": merged})


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def get_required_fields(nodes: Sequence[Node], params: Mapping[Any, Any]) -> list[str]:
    """
    Names of fields that are required for this input: `required` is set and
    the field, along with every element enclosing it, is visible against
    the raw, not-yet-cast params. A hidden section hides its fields.
    """
    required: list[str] = []
    for field, ancestors in walk_fields(nodes):
        if not field.required:
            continue
        if not field.name:
            raise FormConfigError(f"Required field '{field.id}' has no name.")
        if is_visible(field, params) and all(is_visible(e, params) for e in ancestors):
            required.append(field.name)
    return required


def validate(tree: Instance | Sequence[Node], params: Mapping[Any, Any] | None = None) -> Changes:
    """
    Validate `params` against the form description `tree`.

    Malformed values become field errors; only an inconsistent description
    raises (FormConfigError).
    """
    params = params or {}
    nodes = tree.items if isinstance(tree, Instance) else tree
    fields = flatten_fields(nodes)
    ensure_unique_names(fields)
    types = build_types_map(fields)

    data: dict[str, Any] = {}
    errors: defaultdict[str, list[str]] = defaultdict(list)

    for field in fields:
        raw = lookup(params, field.name, _MISSING)
        if raw is _MISSING:
            continue
        try:
            data[field.name] = cast(types[field.name], raw)
        except CastError as exc:
            logger.debug("Field %r rejected value: %s", field.name, exc)
            errors[field.name].append(INVALID)

    required = get_required_fields(nodes, params)
    for name in required:
        if name not in errors and _is_blank(data.get(name)):
            errors[name].append(BLANK)

    for field in fields:
        value = data.get(field.name)
        if value is None or INVALID in errors.get(field.name, ()):
            continue
        for rule in field.validations or []:
            errors[field.name].extend(apply_rule(value, rule))

    return Changes(
        data=data,
        errors={name: messages for name, messages in errors.items() if messages},
        required=required,
    )
