"""
Real Redis-backed token store for production when REDIS_URL is set.
Implements the same interface as src.database.redis (in-memory stub).

Sharing the token through Redis lets several worker processes reuse one
provider token instead of each fetching its own. Expiry is enforced by the
key TTL, so an expired token is never returned.
"""

from __future__ import annotations

import math
from typing import Optional

import redis


class RedisCache:
    """
    Redis-backed token store. Use when REDIS_URL is set in production.
    """

    def __init__(self, url: str, prefix: str = "payments:token") -> None:
        self._client = redis.from_url(url, decode_responses=True)
        self._prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    def set_token(self, key: str, token: str, ttl: float) -> None:
        # SETEX needs whole seconds; round down so the token never outlives its expiry.
        seconds = int(math.floor(ttl))
        if seconds <= 0:
            return
        self._client.setex(self._key(key), seconds, token)

    def get_token(self, key: str) -> Optional[str]:
        raw = self._client.get(self._key(key))
        return raw or None

    def delete_token(self, key: str) -> None:
        self._client.delete(self._key(key))

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except redis.RedisError:
            return False
