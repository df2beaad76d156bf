# base.py
# Backend contract: what a submission function receives and returns.
#
#   fn(data: dict, config: dict) -> BackendSuccess | BackendFailure
#
# A module may also expose validate_config(config) -> str | None, returning
# an error message for a configuration it cannot work with.

from typing import Any, Protocol

from pydantic import BaseModel, Field


class BackendSuccess(BaseModel):
    """Returned when the backend accepted the record."""

    message: str = Field(default="Form submitted successfully.")
    data: dict[str, Any] = Field(default_factory=dict, description="Payload echoed to the caller.")


class BackendFailure(BaseModel):
    """
    Returned when the backend rejected the record. `errors` keyed by field
    name are merged into the validation errors; without them the failure
    is passed to the caller as-is.
    """

    message: str
    errors: dict[str, list[str]] | None = None


BackendResult = BackendSuccess | BackendFailure


class SubmitFn(Protocol):
    def __call__(self, data: dict[str, Any], config: dict[str, Any]) -> BackendResult: ...
