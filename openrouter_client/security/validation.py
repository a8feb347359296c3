"""Input validation for outbound calls.

Every facade method runs these checks before touching the transport, so a
request that fails validation never leaves the process. All checks raise
``ValidationError`` with a message naming the offending field.
"""

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from openrouter_client.errors import ValidationError

MESSAGE_ROLES = ("system", "user", "assistant", "tool")

# OpenRouter key shapes: sk-or-v1-... (API) and sk-or-prov-... (provisioning)
_KEY_PATTERN = re.compile(r"^sk-or-(v1|prov)-[a-zA-Z0-9]+$")
_MIN_KEY_LENGTH = 10


def require_fields(data: Mapping[str, Any], fields: Iterable[str]) -> None:
    """Fail once, naming every missing, None or empty-string field."""
    missing = [f for f in fields if data.get(f) is None or data.get(f) == ""]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def check_api_key(key: str | None) -> None:
    """Non-empty; unknown formats are accepted if at least 10 characters."""
    if not key:
        raise ValidationError("API key is required")
    if not _KEY_PATTERN.match(key) and len(key) < _MIN_KEY_LENGTH:
        raise ValidationError("API key appears to be invalid (too short)")


def check_model(model: Any) -> None:
    if not isinstance(model, str) or not model:
        raise ValidationError("Model must be a non-empty string")


def check_messages(messages: Any) -> None:
    if not isinstance(messages, Sequence) or isinstance(messages, str) or not messages:
        raise ValidationError("Messages must be a non-empty list")

    for index, message in enumerate(messages):
        if not isinstance(message, Mapping):
            raise ValidationError(f"Message at index {index} must be an object")
        if "role" not in message or "content" not in message:
            raise ValidationError(
                f"Message at index {index} must have 'role' and 'content' fields"
            )
        check_enum(message["role"], MESSAGE_ROLES, f"messages[{index}].role")


def check_tools(tools: Any) -> None:
    if not isinstance(tools, Sequence) or isinstance(tools, str):
        raise ValidationError("Tools must be a list")

    for index, tool in enumerate(tools):
        if not isinstance(tool, Mapping):
            raise ValidationError(f"Tool at index {index} must be an object")
        if tool.get("type") is None:
            raise ValidationError(f"Tool at index {index} must have a 'type' field")
        if tool["type"] == "function":
            function = tool.get("function")
            if not isinstance(function, Mapping):
                raise ValidationError(
                    f"Function tool at index {index} must have a 'function' field"
                )
            if function.get("name") is None:
                raise ValidationError(
                    f"Function tool at index {index} must have a 'function.name' field"
                )


def check_prompt(prompt: Any) -> None:
    """A prompt is either one string or a list of strings, never empty."""
    if isinstance(prompt, str):
        if not prompt:
            raise ValidationError("Prompt cannot be empty")
        return
    if isinstance(prompt, Sequence):
        if not prompt:
            raise ValidationError("Prompt list cannot be empty")
        for index, item in enumerate(prompt):
            if not isinstance(item, str):
                raise ValidationError(f"Prompt at index {index} must be a string")
        return
    raise ValidationError("Prompt must be a string or a list of strings")


def check_enum(value: Any, allowed: Sequence[Any], field: str) -> None:
    """None passes; callers decide separately whether the field is required."""
    if value is not None and value not in allowed:
        raise ValidationError(
            f'Invalid value for {field}: "{value}". '
            f"Allowed values: {', '.join(str(a) for a in allowed)}"
        )


def _is_number(value: Any) -> bool:
    # NaN and inf compare False against any bound, so they are rejected here
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def check_range(value: Any, low: float, high: float, field: str) -> None:
    if not _is_number(value):
        raise ValidationError(f"{field} must be a number")
    if value < low or value > high:
        raise ValidationError(f"{field} must be between {low} and {high}")


def check_positive_integer(value: Any, field: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if value <= 0:
        raise ValidationError(f"{field} must be greater than 0")


def check_positive_number(value: Any, field: str) -> None:
    if not _is_number(value) or value <= 0:
        raise ValidationError(f"{field} must be a positive number")


def check_string(value: Any, field: str, min_length: int = 0, max_length: int | None = None) -> None:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    if min_length > 0 and len(value) < min_length:
        raise ValidationError(f"{field} must be at least {min_length} characters")
    if max_length is not None and len(value) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
