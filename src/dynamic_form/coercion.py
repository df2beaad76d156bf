# coercion.py
# Field type registry: declared field type -> primitive type -> caster.
#
# New field types are additions to FIELD_TYPES / CASTS, never new branches
# in the validator. Unrecognized declared types pass through under their
# literal name, and a primitive with no caster keeps the raw value.

import json
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Mapping

from dynamic_form.models import FormField

logger = logging.getLogger(__name__)

STRING = "string"
DECIMAL = "decimal"
BOOLEAN = "boolean"
ARRAY_OF_RECORDS = "array_of_records"


class CastError(ValueError):
    """Raised by a caster when a value cannot take the field's type."""


FIELD_TYPES: dict[str, str] = {
    "string":        STRING,
    "text":          STRING,
    "email":         STRING,
    "textarea":      STRING,
    "select":        STRING,
    "decimal":       DECIMAL,
    "boolean":       BOOLEAN,
    "direct_upload": ARRAY_OF_RECORDS,
    "file_set":      ARRAY_OF_RECORDS,
}


def map_field_type(declared: str) -> str:
    return FIELD_TYPES.get(declared, declared)


def build_types_map(fields: Iterable[FormField]) -> dict[str, str]:
    """Field name -> primitive type, e.g. {"email": "string", "age": "decimal"}."""
    return {field.name: map_field_type(field.type) for field in fields}


# ---------------------------------------------------------------------------
# Casters
# ---------------------------------------------------------------------------


def _cast_string(value: Any) -> str:
    if not isinstance(value, str):
        raise CastError(f"expected a string, got {type(value).__name__}")
    return value


def _cast_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise CastError("booleans are not numbers")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float, str)):
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise CastError(f"{value!r} is not a number") from exc
    else:
        raise CastError(f"expected a number, got {type(value).__name__}")
    if not number.is_finite():
        raise CastError(f"{value!r} is not a finite number")
    return number


_TRUE = ("true", "1")
_FALSE = ("false", "0")


def _cast_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
    raise CastError(f"{value!r} is not a boolean")


def _cast_records(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        raise CastError(f"expected a list of records, got {type(value).__name__}")
    records: list[dict[str, Any]] = []
    for entry in value:
        if not isinstance(entry, Mapping):
            raise CastError(f"expected a record, got {type(entry).__name__}")
        records.append(dict(entry))
    return records


CASTS: dict[str, Callable[[Any], Any]] = {
    STRING:           _cast_string,
    DECIMAL:          _cast_decimal,
    BOOLEAN:          _cast_boolean,
    ARRAY_OF_RECORDS: _cast_records,
}


def decode_serialized_records(value: Any) -> Any:
    """
    Upload widgets may post a file set as a JSON-encoded string. Decode it
    when possible; on failure hand back the raw value so the cast reports it.
    """
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        logger.debug("File set value is not valid JSON; leaving it as-is.")
        return value


def cast(primitive: str, value: Any) -> Any:
    """
    Cast a raw submitted value. Empty strings become None. Primitives with
    no registered caster keep the value untouched.
    """
    if value is None or value == "":
        return None
    if primitive == ARRAY_OF_RECORDS:
        value = decode_serialized_records(value)
    caster = CASTS.get(primitive)
    if caster is None:
        return value
    return caster(value)
