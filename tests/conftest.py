"""Shared fixtures for the OpenRouter client test suite."""

import json

import httpx
import pytest

from openrouter_client.client import OpenRouterClient
from openrouter_client.config.settings import ConfigStore, get_settings

API_KEY = "sk-or-v1-abcdef1234567890"
PROVISIONING_KEY = "sk-or-prov-0987654321fedcba"


@pytest.fixture
def api_key() -> str:
    return API_KEY


@pytest.fixture
def chat_messages() -> list[dict]:
    return [
        {"role": "system", "content": "You are a video editing assistant."},
        {"role": "user", "content": "hi"},
    ]


@pytest.fixture
def override_settings(monkeypatch):
    """Factory fixture: set env vars and clear settings cache.

    Usage:
        override_settings(OPENROUTER_API_KEY="sk-or-v1-x", ENABLE_API_LOGGING="true")
    """
    def _override(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setenv(key.upper(), str(value))
        # Clear lru_cache so Settings re-reads env
        get_settings.cache_clear()

    yield _override

    # Always clear cache on teardown so other tests get fresh settings
    get_settings.cache_clear()


class RecordingHandler:
    """httpx.MockTransport handler returning a canned response and keeping every request."""

    def __init__(self, status_code: int = 200, body=None, headers: dict | None = None, text: str | None = None):
        self.status_code = status_code
        self.body = body if body is not None else {}
        self.headers = headers or {}
        self.text = text
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text, headers=self.headers)
        return httpx.Response(self.status_code, json=self.body, headers=self.headers)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> dict:
        return json.loads(self.last.content)


@pytest.fixture
async def make_client(tmp_path):
    """Factory fixture: OpenRouterClient wired to a MockTransport handler.

    Logging and the suggestion cache are written under tmp_path.
    """
    created: list[httpx.AsyncClient] = []

    def _make(handler, api_key: str = API_KEY, **config) -> OpenRouterClient:
        values = {
            "logs_dir": str(tmp_path / "api-logs"),
            "ai_cache_dir": str(tmp_path / "ai-cache"),
            **config,
        }
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        created.append(http_client)
        return OpenRouterClient(api_key, ConfigStore(values, environ={}), http_client=http_client)

    yield _make

    for http_client in created:
        await http_client.aclose()


def make_completion(content: str = "hello", generation_id: str = "gen_1") -> dict:
    return {
        "id": generation_id,
        "choices": [{"message": {"role": "assistant", "content": content}}],
    }
