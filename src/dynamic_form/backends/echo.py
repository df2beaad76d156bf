# echo.py
# Logs the record and hands it back. Useful for demos and tests.

import logging
from typing import Any

from dynamic_form.backends.base import BackendSuccess

__all__ = ["submit"]

CONFIG_KEYS = ("message",)

logger = logging.getLogger(__name__)


def submit(data: dict[str, Any], config: dict[str, Any]) -> BackendSuccess:
    logger.info("Form submitted: %r", data)
    return BackendSuccess(message=config.get("message", "Form submitted successfully."), data=data)
