# submission.py
# Validate, then hand the record to the form's backend.
#
# Control flow:
#   validate → (invalid? stop) → resolve backend in registry
#   → validate_config → call → merge field errors / pass failure through
#
# The backend is only ever looked up in the registry; a decoded form can
# name nothing that the host did not register.

import logging
from typing import Any, Literal, Mapping

from pydantic import BaseModel

from dynamic_form.backends.base import BackendFailure, BackendSuccess, SubmitFn
from dynamic_form.errors import BackendConfigError
from dynamic_form.models import Instance
from dynamic_form.registry import REGISTRY, Registry
from dynamic_form.validation import Changes, validate

logger = logging.getLogger(__name__)


class Submission(BaseModel):
    """What happened to one submit attempt."""

    status: Literal["ok", "invalid", "error"]
    changes: Changes
    result: BackendSuccess | BackendFailure | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def submit(
    instance: Instance,
    params: Mapping[Any, Any] | None,
    registry: Registry = REGISTRY,
) -> Submission:
    """
    Validate `params` against `instance` and, if valid, invoke its backend.

    Raises BackendConfigError when the form has no usable backend; every
    other outcome is reported in the returned Submission.
    """
    changes = validate(instance, params)
    if not changes.valid:
        logger.debug("Form %s invalid: %s", instance.id, changes.errors)
        return Submission(status="invalid", changes=changes)

    backend = instance.backend
    if backend is None:
        raise BackendConfigError(f"Form '{instance.id}' has no backend configured.")

    fn: SubmitFn = registry.function_for(backend.module, backend.function)
    config = dict(backend.config)

    check = registry.config_validator(backend.module)
    if check is not None:
        problem = check(config)
        if problem:
            raise BackendConfigError(f"Backend '{backend.module}' rejected its config: {problem}")

    logger.info("Submitting form %s via %s.%s", instance.id, backend.module, backend.function)
    result = fn(dict(changes.data), config)

    if isinstance(result, BackendSuccess):
        return Submission(status="ok", changes=changes, result=result)
    if isinstance(result, BackendFailure):
        if result.errors:
            merged = changes.merge_errors(result.errors)
            return Submission(status="invalid", changes=merged, result=result)
        logger.info("Backend %s failed: %s", backend.module, result.message)
        return Submission(status="error", changes=changes, result=result)

    raise BackendConfigError(
        f"Backend '{backend.module}.{backend.function}' returned "
        f"{type(result).__name__}, expected BackendSuccess or BackendFailure."
    )
