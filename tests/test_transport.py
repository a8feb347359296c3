"""Tests for openrouter_client/transport/http.py — headers, decoding, error mapping and exchange logging."""

import math
import threading
from datetime import datetime, timezone

import httpx
import pytest

from openrouter_client.config.settings import ConfigStore
from openrouter_client.errors import (
    AuthenticationError,
    ErrorKind,
    InsufficientCreditsError,
    ModelNotFoundError,
    OpenRouterError,
    RateLimitError,
)
from openrouter_client.logging.audit import client_ip_var, trace_id_var
from openrouter_client.logging.store import ApiLogStore
from openrouter_client.transport.base import RequestDescriptor
from openrouter_client.transport.http import HttpTransport
from tests.conftest import API_KEY, RecordingHandler


def _today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


@pytest.fixture
async def make_transport(tmp_path):
    created: list[httpx.AsyncClient] = []

    def _make(handler, **config) -> HttpTransport:
        settings = ConfigStore({"logs_dir": str(tmp_path / "api-logs"), **config}, environ={}).settings()
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        created.append(client)
        return HttpTransport(settings, ApiLogStore.from_settings(settings), client)

    yield _make

    for client in created:
        await client.aclose()


class TestHeaders:

    async def test_default_headers(self, make_transport):
        handler = RecordingHandler(body={"ok": True})
        transport = make_transport(handler)
        await transport.get("/api/v1/models", API_KEY)

        headers = handler.last.headers
        assert headers["Content-Type"] == "application/json"
        assert headers["Accept"] == "application/json"
        assert headers["Authorization"] == f"Bearer {API_KEY}"
        assert "X-Title" not in headers
        assert "HTTP-Referer" not in headers

    async def test_app_attribution_headers(self, make_transport):
        handler = RecordingHandler()
        transport = make_transport(handler, app_name="AI Video Editor", app_url="https://editor.test")
        await transport.get("/api/v1/models", API_KEY)

        assert handler.last.headers["X-Title"] == "AI Video Editor"
        assert handler.last.headers["HTTP-Referer"] == "https://editor.test"

    async def test_no_authorization_without_credential(self, make_transport):
        handler = RecordingHandler()
        transport = make_transport(handler)
        await transport.get("/api/v1/auth/keys?code=c")
        assert "Authorization" not in handler.last.headers

    async def test_extra_headers_are_appended(self, make_transport):
        handler = RecordingHandler()
        transport = make_transport(handler, app_name="Editor")
        await transport.get("/api/v1/models", API_KEY, {"X-Title": "Override", "X-Custom": "1"})

        assert handler.last.headers.get_list("X-Title") == ["Editor", "Override"]
        assert handler.last.headers["X-Custom"] == "1"


class TestRequest:

    async def test_url_joins_base(self, make_transport):
        handler = RecordingHandler()
        transport = make_transport(handler, base_url="https://proxy.test/")
        await transport.get("/api/v1/credits", API_KEY)
        assert str(handler.last.url) == "https://proxy.test/api/v1/credits"

    async def test_get_sends_no_body(self, make_transport):
        handler = RecordingHandler()
        transport = make_transport(handler)
        await transport.send(RequestDescriptor("/api/v1/models", "GET", {"ignored": True}, API_KEY))
        assert handler.last.method == "GET"
        assert handler.last.content == b""

    async def test_post_sends_json_body(self, make_transport):
        handler = RecordingHandler()
        transport = make_transport(handler)
        await transport.post("/api/v1/chat/completions", {"model": "x/y"}, API_KEY)
        assert handler.last.method == "POST"
        assert handler.last_json() == {"model": "x/y"}

    @pytest.mark.parametrize("body", [{"temperature": math.nan}, {"blob": object()}])
    async def test_unencodable_body(self, make_transport, body):
        handler = RecordingHandler()
        transport = make_transport(handler, enable_logging=True)
        with pytest.raises(OpenRouterError) as exc_info:
            await transport.post("/api/v1/chat/completions", body, API_KEY)
        assert type(exc_info.value) is OpenRouterError
        assert exc_info.value.message == "Failed to encode request data as JSON"
        assert exc_info.value.code == 0
        assert handler.requests == []

    async def test_returns_json_object_unchanged(self, make_transport):
        body = {"id": "gen_1", "choices": [], "usage": {"total_tokens": 3}}
        transport = make_transport(RecordingHandler(body=body))
        assert await transport.get("/api/v1/models", API_KEY) == body

    async def test_wraps_non_object_json(self, make_transport):
        transport = make_transport(RecordingHandler(body=[1, 2, 3]))
        assert await transport.get("/api/v1/models", API_KEY) == {"data": [1, 2, 3]}

    async def test_wraps_text_body(self, make_transport):
        transport = make_transport(RecordingHandler(text="plain words"))
        assert await transport.get("/api/v1/models", API_KEY) == {"data": "plain words"}

    async def test_empty_body(self, make_transport):
        transport = make_transport(RecordingHandler(text=""))
        assert await transport.get("/api/v1/models", API_KEY) == {"data": None}


class TestErrorMapping:

    async def test_401(self, make_transport):
        transport = make_transport(RecordingHandler(401, {"error": {"message": "No auth credentials found"}}))
        with pytest.raises(AuthenticationError) as exc_info:
            await transport.get("/api/v1/models", API_KEY)
        assert exc_info.value.message == "No auth credentials found"
        assert exc_info.value.code == 401

    async def test_404(self, make_transport):
        transport = make_transport(RecordingHandler(404, {"error": {"message": "Model not found"}}))
        with pytest.raises(ModelNotFoundError):
            await transport.post("/api/v1/chat/completions", {"model": "nope/nope"}, API_KEY)

    async def test_429_with_retry_after(self, make_transport):
        handler = RecordingHandler(429, {"error": {"message": "Rate limited"}}, headers={"Retry-After": "30"})
        transport = make_transport(handler)
        with pytest.raises(RateLimitError) as exc_info:
            await transport.get("/api/v1/models", API_KEY)
        assert exc_info.value.retry_after == 30
        assert exc_info.value.kind is ErrorKind.RATE_LIMIT

    async def test_429_with_http_date(self, make_transport):
        handler = RecordingHandler(429, {}, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})
        transport = make_transport(handler)
        with pytest.raises(RateLimitError) as exc_info:
            await transport.get("/api/v1/models", API_KEY)
        assert exc_info.value.retry_after is None

    async def test_402(self, make_transport):
        transport = make_transport(RecordingHandler(402, {"error": {"message": "Payment required"}}))
        with pytest.raises(InsufficientCreditsError):
            await transport.get("/api/v1/credits", API_KEY)

    async def test_500_is_generic(self, make_transport):
        body = {"error": {"message": "Upstream exploded"}}
        transport = make_transport(RecordingHandler(500, body))
        with pytest.raises(OpenRouterError) as exc_info:
            await transport.get("/api/v1/models", API_KEY)
        err = exc_info.value
        assert type(err) is OpenRouterError
        assert err.code == 500
        assert err.message == "Upstream exploded"
        assert err.context == {"http_code": 500, "response": body}
        assert err.retryable

    async def test_text_error_body(self, make_transport):
        transport = make_transport(RecordingHandler(503, text="Service Unavailable"))
        with pytest.raises(OpenRouterError, match="Service Unavailable"):
            await transport.get("/api/v1/models", API_KEY)

    async def test_transport_failure(self, make_transport):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        transport = make_transport(handler)
        with pytest.raises(OpenRouterError) as exc_info:
            await transport.get("/api/v1/models", API_KEY)
        err = exc_info.value
        assert err.code == 0
        assert err.message == "HTTP request failed: connection refused"
        assert err.context == {"http_code": 0, "response": None}
        assert isinstance(err.__cause__, httpx.ConnectError)


class TestExchangeLogging:

    async def test_not_logged_when_disabled(self, make_transport, tmp_path):
        transport = make_transport(RecordingHandler(body={"id": "gen_1"}))
        await transport.get("/api/v1/models", API_KEY)
        assert not (tmp_path / "api-logs").exists()

    async def test_header_id_wins(self, make_transport):
        handler = RecordingHandler(body={"id": "gen_body"}, headers={"X-OpenRouter-Generation-Id": "gen_header"})
        transport = make_transport(handler, enable_logging=True)
        await transport.post("/api/v1/chat/completions", {"model": "x/y"}, API_KEY)
        assert transport.api_log.list(_today()) == ["gen_header"]

    async def test_body_id_used(self, make_transport):
        transport = make_transport(RecordingHandler(body={"id": "gen_body"}), enable_logging=True)
        await transport.post("/api/v1/chat/completions", {"model": "x/y"}, API_KEY)
        assert transport.api_log.list(_today()) == ["gen_body"]

    async def test_synthesized_id(self, make_transport):
        transport = make_transport(RecordingHandler(body={"data": []}), enable_logging=True)
        await transport.get("/api/v1/models", API_KEY)
        ids = transport.api_log.list(_today())
        assert len(ids) == 1
        assert ids[0].startswith("gen_")

    async def test_entry_is_masked(self, make_transport):
        transport = make_transport(RecordingHandler(body={"id": "gen_1"}), enable_logging=True)
        await transport.post("/api/v1/chat/completions", {"model": "x/y"}, API_KEY)

        entry = transport.api_log.read("gen_1")
        assert entry["request"]["endpoint"] == "/api/v1/chat/completions"
        assert entry["request"]["method"] == "POST"
        assert entry["request"]["body"] == {"model": "x/y"}
        assert entry["request"]["auth"] == "sk-or-v***890"
        assert entry["request"]["headers"]["Authorization"] == "Bearer sk-or-v***890"
        assert entry["response"]["status_code"] == 200
        assert entry["response"]["body"] == {"id": "gen_1"}
        assert entry["metadata"]["client_ip"] == "cli"
        assert entry["metadata"]["user_agent"] == "openrouter-client-python"

    async def test_error_responses_are_logged(self, make_transport):
        transport = make_transport(RecordingHandler(401, {"id": "gen_err"}), enable_logging=True)
        with pytest.raises(AuthenticationError):
            await transport.get("/api/v1/models", API_KEY)
        assert transport.api_log.read("gen_err")["response"]["status_code"] == 401

    async def test_transport_failure_is_logged(self, make_transport):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        transport = make_transport(handler, enable_logging=True)
        with pytest.raises(OpenRouterError):
            await transport.get("/api/v1/models", API_KEY)

        ids = transport.api_log.list(_today())
        assert len(ids) == 1
        entry = transport.api_log.read(ids[0])
        assert entry["response"]["status_code"] == 0
        assert entry["response"]["body"] is None

    async def test_written_off_the_event_loop(self, make_transport, monkeypatch):
        transport = make_transport(RecordingHandler(body={"id": "gen_1"}), enable_logging=True)
        writer_threads = []
        original_log = transport.api_log.log

        def recording_log(*args, **kwargs):
            writer_threads.append(threading.get_ident())
            return original_log(*args, **kwargs)

        monkeypatch.setattr(transport.api_log, "log", recording_log)
        await transport.get("/api/v1/models", API_KEY)

        assert len(writer_threads) == 1
        assert writer_threads[0] != threading.get_ident()
        assert transport.api_log.read("gen_1") is not None

    async def test_client_ip_from_context(self, make_transport):
        transport = make_transport(RecordingHandler(body={"id": "gen_1"}), enable_logging=True)
        token = client_ip_var.set("203.0.113.7")
        try:
            await transport.get("/api/v1/models", API_KEY)
        finally:
            client_ip_var.reset(token)
        assert transport.api_log.read("gen_1")["metadata"]["client_ip"] == "203.0.113.7"

    async def test_trace_id_from_context(self, make_transport):
        transport = make_transport(RecordingHandler(body={"id": "gen_1"}), enable_logging=True)
        token = trace_id_var.set("req_fromcontext")
        try:
            await transport.get("/api/v1/models", API_KEY)
        finally:
            trace_id_var.reset(token)
        assert transport.api_log.read("gen_1")["trace_id"] == "req_fromcontext"


class TestLifecycle:

    async def test_injected_client_left_open(self, make_transport):
        transport = make_transport(RecordingHandler())
        client = transport._client
        await transport.aclose()
        assert not client.is_closed

    async def test_owned_client_closed(self):
        settings = ConfigStore(environ={}).settings()
        transport = HttpTransport(settings)
        client = await transport._get_client()
        await transport.aclose()
        assert client.is_closed
