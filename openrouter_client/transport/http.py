"""HTTP transport for the OpenRouter API.

One call = one request/response cycle: build headers, send, decode, log the
exchange, then classify the outcome. There is no retry here; callers decide
from the typed error whether another attempt makes sense.
"""

import asyncio
import json
from typing import Any

import httpx

from openrouter_client.config.settings import Settings
from openrouter_client.errors import OpenRouterError, classify_http_error
from openrouter_client.logging.audit import (
    RequestTimer,
    client_ip_var,
    generate_generation_id,
    generate_trace_id,
    get_audit_logger,
    trace_id_var,
    user_agent_var,
)
from openrouter_client.logging.store import ApiLogStore
from openrouter_client.transport.base import RequestDescriptor, ResponseEnvelope

GENERATION_ID_HEADER = "X-OpenRouter-Generation-Id"
DEFAULT_USER_AGENT = "openrouter-client-python"


class HttpTransport:
    """Executes OpenRouter calls over a shared httpx.AsyncClient."""

    def __init__(
        self,
        settings: Settings,
        api_log: ApiLogStore | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self._settings = settings
        self._base_url = settings.openrouter_base_url.rstrip("/")
        self._timeout = httpx.Timeout(settings.http_timeout)
        self.api_log = api_log
        self._client = client
        self._owns_client = client is None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client

    def _build_headers(self, credential: str, extra_headers: dict[str, str]) -> list[tuple[str, str]]:
        headers = [
            ("Content-Type", "application/json"),
            ("Accept", "application/json"),
        ]
        if credential:
            headers.append(("Authorization", f"Bearer {credential}"))
        if self._settings.openrouter_app_name:
            headers.append(("X-Title", self._settings.openrouter_app_name))
        if self._settings.openrouter_app_url:
            headers.append(("HTTP-Referer", self._settings.openrouter_app_url))
        # Caller headers are appended as-is; duplicates are left to httpx
        headers.extend((str(k), str(v)) for k, v in extra_headers.items())
        return headers

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        credential: str = "",
        extra_headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        descriptor = RequestDescriptor(
            endpoint=endpoint,
            method=method.upper(),
            body=dict(body or {}),
            credential=credential,
            headers=dict(extra_headers or {}),
        )
        return await self.send(descriptor)

    async def get(self, endpoint: str, credential: str = "", extra_headers: dict[str, str] | None = None) -> dict[str, Any]:
        return await self.request(endpoint, "GET", None, credential, extra_headers)

    async def post(
        self, endpoint: str, body: dict[str, Any], credential: str = "", extra_headers: dict[str, str] | None = None
    ) -> dict[str, Any]:
        return await self.request(endpoint, "POST", body, credential, extra_headers)

    async def patch(
        self, endpoint: str, body: dict[str, Any], credential: str = "", extra_headers: dict[str, str] | None = None
    ) -> dict[str, Any]:
        return await self.request(endpoint, "PATCH", body, credential, extra_headers)

    async def delete(self, endpoint: str, credential: str = "", extra_headers: dict[str, str] | None = None) -> dict[str, Any]:
        return await self.request(endpoint, "DELETE", None, credential, extra_headers)

    async def send(self, descriptor: RequestDescriptor) -> dict[str, Any]:
        url = f"{self._base_url}{descriptor.endpoint}"
        headers = self._build_headers(descriptor.credential, descriptor.headers)
        kwargs: dict[str, Any] = {"headers": headers, "timeout": self._timeout}
        if descriptor.sends_body:
            kwargs["content"] = _encode_body(descriptor.body)

        client = await self._get_client()
        response: httpx.Response | None = None
        transport_error: httpx.HTTPError | None = None

        with RequestTimer() as timer:
            try:
                response = await client.request(descriptor.method, url, **kwargs)
            except httpx.HTTPError as e:
                transport_error = e

        envelope = _envelope(response, timer)
        generation_id = _generation_id(envelope)
        trace_id = trace_id_var.get() or generate_trace_id()

        # File write runs off the event loop; to_thread carries the context vars along
        await asyncio.to_thread(self._log_exchange, generation_id, trace_id, descriptor, headers, envelope)

        audit_data = {
            "trace_id": trace_id,
            "generation_id": generation_id,
            "endpoint": descriptor.endpoint,
            "method": descriptor.method,
            "status_code": envelope.status_code,
            "latency_ms": envelope.duration_ms,
        }
        logger = get_audit_logger()

        if transport_error is not None:
            reason = str(transport_error) or type(transport_error).__name__
            logger.warning("OpenRouter request failed", extra={"audit_data": {**audit_data, "error": reason}})
            raise OpenRouterError(
                f"HTTP request failed: {reason}",
                0,
                {"http_code": 0, "response": None},
            ) from transport_error

        if envelope.status_code >= 400:
            error = classify_http_error(envelope.status_code, envelope.body, envelope.headers)
            logger.warning(
                "OpenRouter error response",
                extra={"audit_data": {**audit_data, "error_kind": error.kind.value, "error": error.message}},
            )
            raise error

        logger.info("OpenRouter request completed", extra={"audit_data": audit_data})

        if isinstance(envelope.body, dict):
            return envelope.body
        return {"data": envelope.body}

    def _log_exchange(
        self,
        generation_id: str,
        trace_id: str,
        descriptor: RequestDescriptor,
        headers: list[tuple[str, str]],
        envelope: ResponseEnvelope,
    ) -> None:
        if self.api_log is None or not self.api_log.enabled:
            return
        self.api_log.log(
            generation_id,
            {
                "endpoint": descriptor.endpoint,
                "method": descriptor.method,
                "headers": dict(headers),
                "body": descriptor.body or None,
                "auth": descriptor.credential,
                "timestamp": envelope.started_at,
            },
            envelope.as_dict(),
            {
                "trace_id": trace_id,
                "client_ip": client_ip_var.get(),
                "user_agent": user_agent_var.get() or DEFAULT_USER_AGENT,
            },
        )

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


def _encode_body(body: dict[str, Any]) -> bytes:
    try:
        return json.dumps(body, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise OpenRouterError(
            "Failed to encode request data as JSON",
            0,
            {"http_code": 0, "response": None},
        ) from e


def _decode_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


def _envelope(response: httpx.Response | None, timer: RequestTimer) -> ResponseEnvelope:
    if response is None:
        return ResponseEnvelope(
            status_code=0,
            headers={},
            body=None,
            duration_ms=timer.elapsed_ms,
            started_at=timer.started_at,
            finished_at=timer.finished_at,
        )
    return ResponseEnvelope(
        status_code=response.status_code,
        headers=dict(response.headers.items()),
        body=_decode_body(response.text),
        duration_ms=timer.elapsed_ms,
        started_at=timer.started_at,
        finished_at=timer.finished_at,
    )


def _generation_id(envelope: ResponseEnvelope) -> str:
    """Header first, then the body's ``id``, else a synthesized id."""
    wanted = GENERATION_ID_HEADER.lower()
    for key, value in envelope.headers.items():
        if key.lower() == wanted and value:
            return value
    if isinstance(envelope.body, dict) and envelope.body.get("id"):
        return str(envelope.body["id"])
    return generate_generation_id()
