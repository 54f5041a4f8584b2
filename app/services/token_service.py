"""
IAM bearer token cache for the Orchestrate agent API.

Responsibility: Exchange the API key for a short-lived token, reuse it until it
expires, and let callers drop it after a 401. One instance owns one (token,
expiry) pair; pass it to whoever needs a token instead of sharing globals.

Concurrent callers that find the cache empty each fetch a token; the last
writer wins. Tokens are interchangeable bearer strings, so a redundant fetch
costs one round trip and nothing else.
"""

import logging
import time
from collections.abc import Callable

import httpx

from app.core.config import IAM_TOKEN_TIMEOUT, ORCH_IAM_TOKEN_URL
from app.core.errors import CredentialFetchError

logger = logging.getLogger(__name__)


class TokenService:
    """Lazily fetched, force-invalidatable bearer token."""

    def __init__(
        self,
        api_key: str,
        token_url: str = ORCH_IAM_TOKEN_URL,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
        timeout: float = IAM_TOKEN_TIMEOUT,
    ) -> None:
        self._api_key = api_key
        self._token_url = token_url
        self._http_client = http_client
        self._clock = clock
        self._timeout = timeout
        self._token: str | None = None
        self._expires_at: float | None = None

    async def get_valid_token(self) -> str:
        """Return the cached token while it is unexpired; otherwise fetch and cache a new one."""
        if self._token and self._expires_at is not None and self._clock() < self._expires_at:
            return self._token

        token, expires_in = await self._fetch()
        self._token = token
        self._expires_at = self._clock() + expires_in
        logger.info("[token:get_valid_token] fetched new token expires_in=%s", expires_in)
        return token

    def force_refresh(self) -> None:
        """Drop the cached token; the next get_valid_token() call refetches."""
        self._token = None
        self._expires_at = None

    async def _fetch(self) -> tuple[str, float]:
        payload = {"apikey": self._api_key}
        try:
            if self._http_client is not None:
                response = await self._http_client.post(self._token_url, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.post(self._token_url, json=payload)
        except httpx.HTTPError as e:
            logger.error("[token:fetch] IAM request failed: %s", e)
            raise CredentialFetchError(f"Failed to fetch IAM token: {e}") from e

        if not response.is_success:
            logger.error("[token:fetch] IAM error %s: %s", response.status_code, response.text[:200])
            raise CredentialFetchError(f"Failed to fetch IAM token (status {response.status_code})")

        try:
            data = response.json()
            token = data["token"]
            expires_in = float(data["expires_in"])
        except (ValueError, KeyError, TypeError) as e:
            logger.error("[token:fetch] malformed IAM response: %s", e)
            raise CredentialFetchError("Failed to fetch IAM token: malformed response") from e
        if not isinstance(token, str) or not token:
            logger.error("[token:fetch] IAM response has no token")
            raise CredentialFetchError("Failed to fetch IAM token: empty token")
        return token, expires_in
