"""Credit balance and crypto top-ups."""

from typing import Any

from openrouter_client.features.base import API_PREFIX, Feature
from openrouter_client.security.validation import check_enum, check_positive_number, require_fields

CHAINS = ("ethereum", "polygon", "base")


class Credits(Feature):

    async def get(self) -> dict[str, Any]:
        self._check_auth()
        return await self._transport.get(f"{API_PREFIX}/credits", self._credential)

    async def create_coinbase_charge(self, amount: float, sender: str, chain_id: str) -> dict[str, Any]:
        """Start a Coinbase charge of ``amount`` USD paid from wallet ``sender``."""
        self._check_auth()
        require_fields({"amount": amount, "sender": sender, "chain_id": chain_id}, ("amount", "sender", "chain_id"))
        check_positive_number(amount, "amount")
        check_enum(chain_id, CHAINS, "chain_id")

        body = {"amount": amount, "sender": sender, "chain_id": chain_id}
        return await self._transport.post(f"{API_PREFIX}/credits/coinbase", body, self._credential)
