# Built-in backends. Importing this package registers them in REGISTRY
# under their module paths, e.g. "dynamic_form.backends.echo".

from dynamic_form.backends import echo, jsonl_file, webhook
from dynamic_form.backends.base import BackendFailure, BackendResult, BackendSuccess, SubmitFn
from dynamic_form.registry import REGISTRY

BUILTIN = (echo, jsonl_file, webhook)

for _module in BUILTIN:
    REGISTRY.register_module(_module)

__all__ = ["BackendFailure", "BackendResult", "BackendSuccess", "SubmitFn", "BUILTIN"]
