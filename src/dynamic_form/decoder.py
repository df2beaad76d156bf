# decoder.py
# Rebuilds form descriptions from untrusted JSON text or mappings.
#
# Security boundary: backend module, backend function and config keys are
# resolved against the Registry only. Nothing is imported, nothing is added
# to the registry, and an unknown name fails the whole decode.
#
# Failure taxonomy:
#   missing required key       → MissingKeyError      (fatal)
#   unregistered identifier    → UnknownSymbolError   (fatal)
#   wrong shape for a model    → DecodeError          (fatal)
#   bad timestamp / condition  → safe default, logged (lenient)

import json
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import BaseModel, ValidationError

from dynamic_form.errors import DecodeError, MissingKeyError
from dynamic_form.models import Backend, Element, FormField, Instance, Node, Validation
from dynamic_form.registry import REGISTRY, Registry

logger = logging.getLogger(__name__)

# Stand-in for a condition that cannot be read. Evaluates to False.
UNSATISFIABLE = {"field": None, "operator": None, "value": None}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    value = data.get(key)
    if value is None:
        raise MissingKeyError(key, where)
    return value


def _mapping(data: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise DecodeError(f"Expected an object for {where}, got {type(data).__name__}.")
    return data


def _build(model: type[BaseModel], where: str, **values: Any) -> Any:
    try:
        return model(**values)
    except ValidationError as exc:
        raise DecodeError(f"Invalid {where}: {exc}") from exc


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def decode(data: bytes | str | Mapping[str, Any], registry: Registry = REGISTRY) -> Instance:
    """
    Decode JSON text (str or bytes) or an already-parsed mapping into an
    Instance. Raises DecodeError (or a subclass) on fatal problems.
    """
    if isinstance(data, (bytes, bytearray)):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"Form payload is not UTF-8: {exc}") from exc
    if isinstance(data, str):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as exc:
            raise DecodeError(f"Form payload is not valid JSON: {exc}") from exc
    return decode_instance(_mapping(data, "form"), registry)


def decode_instance(data: Mapping[str, Any], registry: Registry = REGISTRY) -> Instance:
    return _build(
        Instance,
        "form",
        id=_require(data, "id", "form"),
        name=data.get("name"),
        description=data.get("description"),
        items=decode_items(data.get("items"), registry),
        backend=decode_backend(data.get("backend"), registry),
        metadata=data.get("metadata"),
        inserted_at=decode_datetime(data.get("inserted_at")),
        updated_at=decode_datetime(data.get("updated_at")),
    )


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


def decode_items(items: Any, registry: Registry = REGISTRY) -> list[Node]:
    """Decode a node list; absent or empty decodes to []."""
    if items is None:
        return []
    if not isinstance(items, list):
        raise DecodeError(f"Expected a list of items, got {type(items).__name__}.")
    return [decode_item(item, registry) for item in items]


def decode_item(data: Any, registry: Registry = REGISTRY) -> Node:
    """
    Dispatch on "__type__" when present; otherwise a "name" key means a
    field and anything else is an element.
    """
    data = _mapping(data, "item")
    kind = data.get("__type__")
    if kind == "Field":
        return decode_field(data, registry)
    if kind == "Element":
        return decode_element(data, registry)
    if "name" in data:
        return decode_field(data, registry)
    return decode_element(data, registry)


def decode_field(data: Mapping[str, Any], registry: Registry = REGISTRY) -> FormField:
    where = f"field '{data.get('id')}'"
    return _build(
        FormField,
        where,
        id=_require(data, "id", "field"),
        name=_require(data, "name", where),
        type=_require(data, "type", where),
        label=data.get("label"),
        placeholder=data.get("placeholder"),
        help_text=data.get("help_text"),
        default_value=data.get("default_value"),
        options=decode_options(data.get("options")),
        validations=decode_validations(data.get("validations")),
        required=data.get("required"),
        disabled=data.get("disabled"),
        visible_when=decode_visible_when(data.get("visible_when")),
        metadata=data.get("metadata"),
    )


def decode_element(data: Mapping[str, Any], registry: Registry = REGISTRY) -> Element:
    where = f"element '{data.get('id')}'"
    return _build(
        Element,
        where,
        id=_require(data, "id", "element"),
        type=_require(data, "type", where),
        content=data.get("content"),
        items=decode_items(data.get("items"), registry),
        visible_when=decode_visible_when(data.get("visible_when")),
        metadata=data.get("metadata"),
    )


# ---------------------------------------------------------------------------
# Field attributes
# ---------------------------------------------------------------------------


def decode_validations(validations: Any) -> list[Validation] | None:
    if validations is None:
        return None
    if not isinstance(validations, list):
        raise DecodeError(f"Expected a list of validations, got {type(validations).__name__}.")
    return [decode_validation(v) for v in validations]


def decode_validation(data: Any) -> Validation:
    data = _mapping(data, "validation")
    return _build(
        Validation,
        "validation",
        type=_require(data, "type", "validation"),
        value=data.get("value"),
        min=data.get("min"),
        max=data.get("max"),
        message=data.get("message"),
    )


def _decode_option(option: Any) -> Any:
    if isinstance(option, list) and len(option) == 2 and all(isinstance(o, str) for o in option):
        return (option[0], option[1])
    if isinstance(option, Mapping) and "label" in option and "value" in option:
        return (option["label"], option["value"])
    return option


def decode_options(options: Any) -> Any:
    """
    ["Small", "Medium"]          -> bare strings
    [["A", "a"], ["B", "b"]]     -> ("A", "a"), ("B", "b")
    [{"label": "A", "value": "a"}] -> ("A", "a")
    """
    if not isinstance(options, list):
        return options
    return [_decode_option(option) for option in options]


def _decode_condition(condition: Any) -> dict[str, Any]:
    if not isinstance(condition, Mapping):
        logger.debug("Malformed visibility condition %r; hiding node.", condition)
        return dict(UNSATISFIABLE)
    return {
        "field": condition.get("field"),
        "operator": condition.get("operator"),
        "value": condition.get("value"),
    }


def decode_visible_when(data: Any) -> dict[str, Any] | list[dict[str, Any]] | None:
    """Normalize conditions so every one carries field, operator and value."""
    if data is None:
        return None
    if isinstance(data, list):
        return [_decode_condition(c) for c in data]
    return _decode_condition(data)


# ---------------------------------------------------------------------------
# Backend
# ---------------------------------------------------------------------------


def decode_backend(data: Any, registry: Registry = REGISTRY) -> Backend | None:
    if data is None:
        return None
    data = _mapping(data, "backend")
    return _build(
        Backend,
        "backend",
        module=registry.resolve_module(_require(data, "module", "backend")),
        function=registry.resolve_symbol(_require(data, "function", "backend")),
        config=decode_config(data.get("config"), registry),
        name=data.get("name"),
        description=data.get("description"),
    )


def decode_config(config: Any, registry: Registry = REGISTRY) -> list[tuple[str, Any]]:
    """
    Accepts {"key": value}, [{"key": k, "value": v}] or [[k, v]]. Keys must
    be registered identifiers; order is preserved.
    """
    if config is None:
        return []
    if isinstance(config, Mapping):
        return [(registry.resolve_symbol(key), value) for key, value in config.items()]
    if not isinstance(config, list):
        raise DecodeError(f"Expected backend config object or list, got {type(config).__name__}.")

    pairs: list[tuple[str, Any]] = []
    for entry in config:
        if isinstance(entry, Mapping) and "key" in entry:
            pairs.append((registry.resolve_symbol(entry["key"]), entry.get("value")))
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            pairs.append((registry.resolve_symbol(entry[0]), entry[1]))
        else:
            raise DecodeError(f"Malformed backend config entry: {entry!r}")
    return pairs


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


def decode_datetime(value: Any) -> datetime | None:
    """ISO-8601 string -> aware datetime. Anything unparsable becomes None."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Ignoring malformed timestamp %r", value)
            return None
    else:
        if value is not None:
            logger.debug("Ignoring non-string timestamp %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
