"""Usage activity analytics."""

from typing import Any

from openrouter_client.features.base import API_PREFIX, Feature, with_query


class Analytics(Feature):

    async def activity(self, start_date: str | None = None, end_date: str | None = None) -> dict[str, Any]:
        """Activity grouped by day; dates are YYYY-MM-DD and passed as query params."""
        self._check_auth()
        endpoint = with_query(f"{API_PREFIX}/activity", {"start_date": start_date, "end_date": end_date})
        return await self._transport.get(endpoint, self._credential)
