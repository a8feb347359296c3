"""OAuth PKCE flow that mints user API keys.

Both remote calls are unauthenticated: no bearer credential is sent.
"""

import base64
import hashlib
import secrets
import string
from typing import Any

from openrouter_client.features.base import API_PREFIX, Feature, compact, with_query
from openrouter_client.security.validation import check_enum, check_range, require_fields

CHALLENGE_METHODS = ("S256",)

# RFC 7636 unreserved characters
_VERIFIER_ALPHABET = string.ascii_letters + string.digits + "-._~"


class OAuth(Feature):

    def __init__(self, transport):
        super().__init__("", transport)

    @staticmethod
    def generate_pkce_verifier(length: int = 64) -> str:
        check_range(length, 43, 128, "length")
        return "".join(secrets.choice(_VERIFIER_ALPHABET) for _ in range(length))

    @staticmethod
    def generate_pkce_challenge(verifier: str) -> str:
        """S256 challenge: unpadded base64url of the verifier's SHA-256."""
        digest = hashlib.sha256(verifier.encode("ascii")).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")

    async def create_authorization(
        self,
        code_challenge: str,
        code_challenge_method: str,
        redirect_uri: str,
        scope: str | None = None,
        state: str | None = None,
    ) -> dict[str, Any]:
        required = {
            "code_challenge": code_challenge,
            "code_challenge_method": code_challenge_method,
            "redirect_uri": redirect_uri,
        }
        require_fields(required, required)
        check_enum(code_challenge_method, CHALLENGE_METHODS, "code_challenge_method")

        body = {**required, **compact({"scope": scope, "state": state})}
        return await self._transport.post(f"{API_PREFIX}/auth/keys", body)

    async def exchange_code(self, code: str, code_verifier: str) -> dict[str, Any]:
        """Trade an authorization code for an API key."""
        params = {"code": code, "code_verifier": code_verifier}
        require_fields(params, params)
        return await self._transport.get(with_query(f"{API_PREFIX}/auth/keys", params))
