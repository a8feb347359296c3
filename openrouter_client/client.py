"""Root OpenRouter client: one per credential, hands out feature facades.

    async with OpenRouterClient("sk-or-v1-...", {"app_name": "AI Video Editor"}) as client:
        reply = await client.completions().chat(
            model="openai/gpt-4o",
            messages=[{"role": "user", "content": "Hello!"}],
        )
"""

from collections.abc import Mapping
from typing import Any

import httpx

from openrouter_client.config.settings import ConfigStore, Settings
from openrouter_client.features.analytics import Analytics
from openrouter_client.features.completions import Completions
from openrouter_client.features.credits import Credits
from openrouter_client.features.generations import Generations
from openrouter_client.features.keys import Keys
from openrouter_client.features.models import Models
from openrouter_client.features.oauth import OAuth
from openrouter_client.logging.store import ApiLogStore
from openrouter_client.security.validation import check_api_key
from openrouter_client.transport.http import HttpTransport


def resolve_settings(config: Settings | ConfigStore | Mapping[str, Any] | None) -> Settings:
    if isinstance(config, Settings):
        return config
    if isinstance(config, ConfigStore):
        return config.settings()
    return ConfigStore(config or {}).settings()


class OpenRouterClient:
    """Entry point to every OpenRouter feature.

    Settings are snapshotted here; later changes to a ConfigStore do not
    affect a client that already exists.
    """

    def __init__(
        self,
        api_key: str,
        config: Settings | ConfigStore | Mapping[str, Any] | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ):
        check_api_key(api_key)
        self._api_key = api_key
        self._settings = resolve_settings(config)
        self._api_log = ApiLogStore.from_settings(self._settings)
        self._transport = HttpTransport(self._settings, self._api_log, http_client)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def api_log(self) -> ApiLogStore:
        return self._api_log

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    def completions(self) -> Completions:
        return Completions(self._api_key, self._transport)

    def models(self) -> Models:
        return Models(self._api_key, self._transport)

    def credits(self) -> Credits:
        return Credits(self._api_key, self._transport)

    def keys(self, provisioning_key: str) -> Keys:
        """Key management; needs a provisioning key, not the regular API key."""
        return Keys(provisioning_key, self._transport)

    def oauth(self) -> OAuth:
        return OAuth(self._transport)

    def generations(self) -> Generations:
        return Generations(self._api_key, self._transport)

    def analytics(self) -> Analytics:
        return Analytics(self._api_key, self._transport)

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> "OpenRouterClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()
