"""Model catalogue and provider listing."""

from typing import Any

from openrouter_client.features.base import API_PREFIX, Feature, path_segment
from openrouter_client.security.validation import check_string


class Models(Feature):

    async def list(self) -> dict[str, Any]:
        self._check_auth()
        return await self._transport.get(f"{API_PREFIX}/models", self._credential)

    async def list_user(self) -> dict[str, Any]:
        """Models filtered by the account's provider preferences."""
        self._check_auth()
        return await self._transport.get(f"{API_PREFIX}/models/user", self._credential)

    async def count(self) -> dict[str, Any]:
        self._check_auth()
        return await self._transport.get(f"{API_PREFIX}/models/count", self._credential)

    async def providers(self) -> dict[str, Any]:
        self._check_auth()
        return await self._transport.get(f"{API_PREFIX}/providers", self._credential)

    async def endpoints(self, author: str, slug: str) -> dict[str, Any]:
        return await self._model_resource(author, slug, "endpoints")

    async def endpoints_zdr(self, author: str, slug: str) -> dict[str, Any]:
        """Endpoints of a model that offer zero data retention."""
        return await self._model_resource(author, slug, "endpoints/zdr")

    async def parameters(self, author: str, slug: str) -> dict[str, Any]:
        return await self._model_resource(author, slug, "parameters")

    async def _model_resource(self, author: str, slug: str, resource: str) -> dict[str, Any]:
        self._check_auth()
        check_string(author, "author", 1)
        check_string(slug, "slug", 1)
        endpoint = f"{API_PREFIX}/models/{path_segment(author)}/{path_segment(slug)}/{resource}"
        return await self._transport.get(endpoint, self._credential)
