"""API key management.

Everything here except ``current()`` authenticates with a provisioning key,
which is a different credential from the regular API key.
"""

from typing import Any

from openrouter_client.errors import ValidationError
from openrouter_client.features.base import API_PREFIX, Feature, compact, path_segment
from openrouter_client.security.validation import check_api_key, check_string


class Keys(Feature):

    async def create(
        self,
        name: str,
        limit: float | None = None,
        rate_limit: dict[str, Any] | None = None,
        allowed_models: list[str] | None = None,
        allowed_ips: list[str] | None = None,
    ) -> dict[str, Any]:
        self._check_auth()
        check_string(name, "name", 1)

        body = {
            "name": name,
            **compact({
                "limit": limit,
                "rate_limit": rate_limit,
                "allowed_models": allowed_models,
                "allowed_ips": allowed_ips,
            }),
        }
        return await self._transport.post(f"{API_PREFIX}/keys", body, self._credential)

    async def get(self, key_id: str) -> dict[str, Any]:
        self._check_auth()
        check_string(key_id, "key_id", 1)
        return await self._transport.get(f"{API_PREFIX}/keys/{path_segment(key_id)}", self._credential)

    async def update(
        self,
        key_id: str,
        name: str | None = None,
        limit: float | None = None,
        rate_limit: dict[str, Any] | None = None,
        allowed_models: list[str] | None = None,
        allowed_ips: list[str] | None = None,
    ) -> dict[str, Any]:
        self._check_auth()
        check_string(key_id, "key_id", 1)

        body = compact({
            "name": name,
            "limit": limit,
            "rate_limit": rate_limit,
            "allowed_models": allowed_models,
            "allowed_ips": allowed_ips,
        })
        if not body:
            raise ValidationError("At least one field to update is required")

        return await self._transport.patch(f"{API_PREFIX}/keys/{path_segment(key_id)}", body, self._credential)

    async def delete(self, key_id: str) -> dict[str, Any]:
        self._check_auth()
        check_string(key_id, "key_id", 1)
        return await self._transport.delete(f"{API_PREFIX}/keys/{path_segment(key_id)}", self._credential)

    async def current(self, api_key: str) -> dict[str, Any]:
        """Describe the regular API key ``api_key`` (not the provisioning key)."""
        check_api_key(api_key)
        return await self._transport.get(f"{API_PREFIX}/key", api_key)

    # Defined last: the method name shadows the builtin inside the class body
    async def list(self) -> dict[str, Any]:
        self._check_auth()
        return await self._transport.get(f"{API_PREFIX}/keys", self._credential)
