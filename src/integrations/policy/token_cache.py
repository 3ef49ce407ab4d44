"""
Provider token cache.

Produces a valid bearer credential for the payment provider while keeping
authentication calls to a minimum:
- a cached token is reused only while it has not expired
- tokens are stored with an expiry shorter than the provider's lifetime
- concurrent callers in one process share a single in-flight fetch
- failures are surfaced as AuthenticationError and nothing is cached
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from src.integrations.contracts.errors import AuthenticationError
from src.integrations.contracts.interfaces import AccessToken
from src.integrations.policy.response_wrappers import IntegrationResponseError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME_SECONDS = 3600
DEFAULT_REFRESH_MARGIN_SECONDS = 600


class TokenCache:
    def __init__(
        self,
        fetch_token: Callable[[], Awaitable[AccessToken]],
        store,
        *,
        key: str = "campay",
        default_lifetime_seconds: float = DEFAULT_TOKEN_LIFETIME_SECONDS,
        refresh_margin_seconds: float = DEFAULT_REFRESH_MARGIN_SECONDS,
    ) -> None:
        self._fetch_token = fetch_token
        self._store = store
        self._key = key
        self.default_lifetime_seconds = default_lifetime_seconds
        self.refresh_margin_seconds = refresh_margin_seconds
        self._lock = asyncio.Lock()

    async def get_token(self) -> str:
        cached = self._store.get_token(self._key)
        if cached:
            return cached

        async with self._lock:
            # Another coroutine may have refreshed while we waited.
            cached = self._store.get_token(self._key)
            if cached:
                return cached

            logger.info("Requesting new payment provider token (key=%s)", self._key)
            access = await self._fetch()
            ttl = self._ttl_for(access)
            if ttl > 0:
                self._store.set_token(self._key, access.token, ttl)
            else:
                logger.warning("Provider token lifetime shorter than refresh margin; not caching it.")
            return access.token

    def invalidate(self) -> None:
        """Drop the cached token so the next call fetches a fresh one."""
        logger.info("Invalidating cached payment provider token (key=%s)", self._key)
        self._store.delete_token(self._key)

    async def _fetch(self) -> AccessToken:
        try:
            access = await self._fetch_token()
        except AuthenticationError:
            raise
        except (httpx.HTTPError, IntegrationResponseError) as exc:
            logger.error("Payment provider authentication failed: %s", exc)
            raise AuthenticationError("Failed to authenticate with payment provider") from exc

        if not access or not access.token:
            raise AuthenticationError("Payment provider returned an empty token")
        return access

    def _ttl_for(self, access: AccessToken) -> float:
        lifetime: Optional[float] = access.expires_in or self.default_lifetime_seconds
        return float(lifetime) - float(self.refresh_margin_seconds)
