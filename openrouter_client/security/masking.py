"""Credential masking for persisted request logs."""

import copy
from typing import Any

MASK = "***"
_VISIBLE_PREFIX = 7
_VISIBLE_SUFFIX = 3
_MIN_MASKABLE_LENGTH = 10


def mask_api_key(key: str) -> str:
    """Keep the first 7 and last 3 characters; short keys are fully redacted."""
    if len(key) < _MIN_MASKABLE_LENGTH:
        return MASK
    return f"{key[:_VISIBLE_PREFIX]}{MASK}{key[-_VISIBLE_SUFFIX:]}"


def mask_sensitive_data(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy with ``auth`` and the Authorization header masked."""
    masked = copy.deepcopy(data)

    if masked.get("auth"):
        masked["auth"] = mask_api_key(str(masked["auth"]))

    headers = masked.get("headers")
    if isinstance(headers, dict):
        for name, value in headers.items():
            if name.lower() == "authorization" and isinstance(value, str):
                token = value.removeprefix("Bearer ").strip()
                headers[name] = f"Bearer {mask_api_key(token)}" if token else value

    return masked
