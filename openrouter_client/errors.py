"""Typed error taxonomy for OpenRouter calls.

Every error carries a human-readable message, a numeric code (mirrors the
HTTP status where there is one) and a closed ``kind`` so callers can branch
on ``err.kind`` without relying on except-clause ordering:

    try:
        await client.completions().chat(...)
    except OpenRouterError as err:
        if err.kind is ErrorKind.RATE_LIMIT:
            await asyncio.sleep(err.retry_after or 1)
"""

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    MODEL_NOT_FOUND = "model_not_found"
    RATE_LIMIT = "rate_limit"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    PROVIDER = "provider"


class OpenRouterError(Exception):
    """Base error: any non-2xx status or transport failure (code 0)."""

    kind: ErrorKind = ErrorKind.PROVIDER

    def __init__(
        self,
        message: str = "",
        code: int = 0,
        context: dict[str, Any] | None = None,
        retry_after: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.context = context
        self.retry_after = retry_after

    @property
    def retryable(self) -> bool:
        """Rate limits and transport/5xx failures are worth another attempt."""
        if self.kind is ErrorKind.RATE_LIMIT:
            return True
        return self.kind is ErrorKind.PROVIDER and (self.code == 0 or self.code >= 500)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error": self.message,
            "kind": self.kind.value,
            "code": self.code,
        }
        if self.retry_after is not None:
            data["retry_after"] = self.retry_after
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message={self.message!r}, code={self.code})"


class ValidationError(OpenRouterError):
    """Caller input rejected before any network access."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, 400, context)


class AuthenticationError(OpenRouterError):
    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, 401, context)


class ModelNotFoundError(OpenRouterError):
    kind = ErrorKind.MODEL_NOT_FOUND

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, 404, context)


class RateLimitError(OpenRouterError):
    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str,
        retry_after: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, 429, context, retry_after)


class InsufficientCreditsError(OpenRouterError):
    kind = ErrorKind.INSUFFICIENT_CREDITS

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, 402, context)


_CREDIT_MARKERS = ("credit", "balance")


def extract_error_message(status_code: int, body: Any) -> str:
    """Pull a display message out of an error envelope.

    Handles ``{"error": {"message": ...}}``, ``{"error": "..."}`` and raw
    text bodies; anything else becomes ``HTTP <status>``.
    """
    if isinstance(body, Mapping) and body.get("error") is not None:
        error = body["error"]
        if isinstance(error, Mapping):
            message = error.get("message")
            return str(message) if message is not None else json.dumps(error, default=str)
        return str(error)
    if isinstance(body, str) and body:
        return body
    return f"HTTP {status_code}"


def parse_retry_after(headers: Mapping[str, str]) -> int | None:
    """Read ``Retry-After`` as whole seconds; HTTP-date values yield None."""
    value = None
    for key, header_value in headers.items():
        if key.lower() == "retry-after":
            value = header_value
            break
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def classify_http_error(
    status_code: int, body: Any, headers: Mapping[str, str]
) -> OpenRouterError:
    """Map an HTTP error response onto the typed taxonomy."""
    message = extract_error_message(status_code, body)
    context = {"http_code": status_code, "response": body}

    if status_code == 401:
        return AuthenticationError(message, context)
    if status_code == 404:
        return ModelNotFoundError(message, context)
    if status_code == 429:
        return RateLimitError(message, parse_retry_after(headers), context)
    if status_code == 402:
        return InsufficientCreditsError(message, context)
    if status_code == 403:
        # Best-effort: relies on the provider's wording of the error message
        lowered = message.lower()
        if any(marker in lowered for marker in _CREDIT_MARKERS):
            return InsufficientCreditsError(message, context)
    return OpenRouterError(message, status_code, context)
