# dynamic_form: data-described forms: decode, evaluate visibility,
# validate and submit. Importing the package registers the built-in
# backends in REGISTRY.

from dynamic_form import backends
from dynamic_form.decoder import decode
from dynamic_form.encoder import encode, encode_json
from dynamic_form.errors import (
    BackendConfigError,
    DecodeError,
    FormConfigError,
    MissingKeyError,
    UnknownSymbolError,
)
from dynamic_form.models import (
    Backend,
    Element,
    FormField,
    Instance,
    Node,
    Validation,
    flatten_fields,
)
from dynamic_form.registry import REGISTRY, Registry
from dynamic_form.submission import Submission, submit
from dynamic_form.validation import Changes, validate
from dynamic_form.visibility import evaluate_condition, is_visible, visible_items

__all__ = [
    "REGISTRY",
    "Backend",
    "BackendConfigError",
    "Changes",
    "DecodeError",
    "Element",
    "FormConfigError",
    "FormField",
    "Instance",
    "MissingKeyError",
    "Node",
    "Registry",
    "Submission",
    "UnknownSymbolError",
    "Validation",
    "backends",
    "decode",
    "encode",
    "encode_json",
    "evaluate_condition",
    "flatten_fields",
    "is_visible",
    "submit",
    "validate",
    "visible_items",
]
