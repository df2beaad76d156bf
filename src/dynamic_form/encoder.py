# encoder.py
# Inverse of decoder.py: form description -> portable JSON-compatible shape.
#
# decode(encode(instance)) reproduces the description. Options and config
# pairs go back to the list shapes the decoder accepts; nodes carry an
# explicit "__type__" so nothing has to be inferred on the way back.

import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from dynamic_form.models import Backend, Element, FormField, Instance, Node, Validation


def _plain(value: Any) -> Any:
    """Recursively convert tuples, Decimals and datetimes to JSON-friendly values."""
    if isinstance(value, dict):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def encode_validation(rule: Validation) -> dict[str, Any]:
    return _plain(rule.model_dump())


def encode_node(node: Node) -> dict[str, Any]:
    if isinstance(node, FormField):
        data = node.model_dump(exclude={"validations"})
        data["validations"] = (
            None if node.validations is None else [encode_validation(v) for v in node.validations]
        )
        return {"__type__": "Field", **_plain(data)}
    if isinstance(node, Element):
        data = node.model_dump(exclude={"items"})
        data["items"] = [encode_node(child) for child in node.items]
        return {"__type__": "Element", **_plain(data)}
    raise TypeError(f"Cannot encode {type(node).__name__} as a form node.")


def encode_backend(backend: Backend | None) -> dict[str, Any] | None:
    if backend is None:
        return None
    return {
        "module": backend.module,
        "function": backend.function,
        "config": [{"key": key, "value": _plain(value)} for key, value in backend.config],
        "name": backend.name,
        "description": backend.description,
    }


def encode(instance: Instance) -> dict[str, Any]:
    """Return the portable mapping for `instance`."""
    return {
        "id": instance.id,
        "name": instance.name,
        "description": instance.description,
        "items": [encode_node(node) for node in instance.items],
        "backend": encode_backend(instance.backend),
        "metadata": _plain(instance.metadata),
        "inserted_at": _plain(instance.inserted_at),
        "updated_at": _plain(instance.updated_at),
    }


def encode_json(instance: Instance, indent: int | None = None) -> str:
    return json.dumps(encode(instance), indent=indent, ensure_ascii=False)
