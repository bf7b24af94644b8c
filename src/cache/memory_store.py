# src/cache/memory_store.py — v1
"""In-process cache store (CACHE_BACKEND=memory).

Entries live for the lifetime of the process only. Used by tests and by
one-shot CLI runs that do not need persistence.
"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import Callable

from kitebuilds.cache.base_cache_store import BaseCacheStore


class MemoryCacheStore(BaseCacheStore):
    """Dict-backed cache store with monotonic-clock expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[bytes, float]] = {}

    async def get(self, key: str) -> bytes | None:
        """Retrieve payload by key."""
        item = self._entries.get(key)
        if item is None:
            return None
        value, expires_at = item
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def put(self, key: str, value: bytes, ttl: timedelta) -> None:
        """Store a payload."""
        self._entries[key] = (value, self._clock() + ttl.total_seconds())

    async def delete(self, key: str) -> None:
        """Remove a payload."""
        self._entries.pop(key, None)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
