# webhook.py
# POSTs the record as JSON to a configured URL.
#
# A 422 response whose body carries {"errors": {field: [messages]}} is
# reported as field errors; any other non-2xx status is a generic failure.

import json
import logging
from typing import Any

import httpx

from dynamic_form.backends.base import BackendFailure, BackendSuccess
from dynamic_form.config import Settings

__all__ = ["submit"]

CONFIG_KEYS = ("url", "headers", "timeout")

logger = logging.getLogger(__name__)


def validate_config(config: dict[str, Any]) -> str | None:
    url = config.get("url")
    if not isinstance(url, str) or not url.startswith(("http://", "https://")):
        return "Config 'url' must be an http(s) URL."
    return None


def _field_errors(response: httpx.Response) -> dict[str, list[str]] | None:
    try:
        body = response.json()
    except (json.JSONDecodeError, ValueError):
        return None
    errors = body.get("errors") if isinstance(body, dict) else None
    if not isinstance(errors, dict):
        return None
    return {
        str(name): [messages] if isinstance(messages, str) else [str(m) for m in messages]
        for name, messages in errors.items()
    }


def submit(data: dict[str, Any], config: dict[str, Any]) -> BackendSuccess | BackendFailure:
    url = config["url"]
    timeout = config.get("timeout") or Settings.from_env().webhook_timeout
    payload = json.loads(json.dumps(data, default=str))

    try:
        response = httpx.post(url, json=payload, headers=config.get("headers"), timeout=timeout)
    except httpx.HTTPError as exc:
        logger.warning("Webhook POST to %s failed: %s", url, exc)
        return BackendFailure(message=f"Webhook request failed: {exc}")

    if response.status_code == 422:
        return BackendFailure(
            message="Webhook rejected the submission.", errors=_field_errors(response)
        )
    if response.is_error:
        return BackendFailure(message=f"Webhook returned HTTP {response.status_code}.")

    logger.info("POST %s -> %s (%d bytes)", url, response.status_code, len(response.content))
    return BackendSuccess(message="Submission delivered.", data=data)
