"""Generation metadata lookup."""

from typing import Any

from openrouter_client.features.base import API_PREFIX, Feature, with_query
from openrouter_client.security.validation import check_string


class Generations(Feature):

    async def get(self, generation_id: str) -> dict[str, Any]:
        """Cost, token counts and provider details for one generation."""
        self._check_auth()
        check_string(generation_id, "generation_id", 1)
        endpoint = with_query(f"{API_PREFIX}/generation", {"id": generation_id})
        return await self._transport.get(endpoint, self._credential)
