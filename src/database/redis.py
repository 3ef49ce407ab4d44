"""
Lightweight in-memory RedisCache replacement for local development.

Holds the payment provider token for a single process so the API can run
without a real Redis instance. Expiry is checked against an injectable
clock so tests can move time forward.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional, Tuple


class RedisCache:
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        # key -> (token, expires_at)
        self._tokens: Dict[str, Tuple[str, float]] = {}

    # --- Token helpers used by TokenCache ------------------------------------

    def set_token(self, key: str, token: str, ttl: float) -> None:
        self._tokens[key] = (token, self._clock() + ttl)

    def get_token(self, key: str) -> Optional[str]:
        entry = self._tokens.get(key)
        if entry is None:
            return None
        token, expires_at = entry
        if self._clock() >= expires_at:
            # Expired tokens are dropped, never handed out.
            self._tokens.pop(key, None)
            return None
        return token

    def delete_token(self, key: str) -> None:
        self._tokens.pop(key, None)

    # --- Misc -----------------------------------------------------------------

    def ping(self) -> bool:
        """
        Health check calls this; always return True so the API reports the
        token store as "connected" in local/dev mode.
        """
        return True
