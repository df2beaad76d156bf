# jsonl_file.py
# Appends each record as one JSON line to a local file.

import json
import logging
import os
from typing import Any

from dynamic_form.backends.base import BackendFailure, BackendSuccess
from dynamic_form.config import Settings

__all__ = ["submit"]

CONFIG_KEYS = ("path",)

logger = logging.getLogger(__name__)


def validate_config(config: dict[str, Any]) -> str | None:
    path = config.get("path")
    if path is not None and (not isinstance(path, str) or not path.strip()):
        return "Config 'path' must be a non-empty string."
    return None


def submit(data: dict[str, Any], config: dict[str, Any]) -> BackendSuccess | BackendFailure:
    path = config.get("path") or Settings.from_env().outbox
    line = json.dumps(data, default=str, ensure_ascii=False)
    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, "a", encoding="utf-8") as fh:
            fh.write(line + "\n")
    except OSError as exc:
        logger.warning("Could not append submission to %s: %s", path, exc)
        return BackendFailure(message=f"Could not store submission: {exc}")
    return BackendSuccess(message=f"Stored submission in {path}.", data=data)
