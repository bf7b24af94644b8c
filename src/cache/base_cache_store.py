# src/cache/base_cache_store.py — v1
"""Abstract cache store interface.

Stores opaque byte payloads under string keys with a per-entry TTL that the
backend enforces. Expired entries read as misses.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta


class CacheStoreError(Exception):
    """Raised when a backend fails to read or write (not on a plain miss)."""


class BaseCacheStore(ABC):
    """Unified interface for cache storage backends."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the payload stored under key, or None if absent/expired."""

    @abstractmethod
    async def put(self, key: str, value: bytes, ttl: timedelta) -> None:
        """Store payload, replacing any previous value; expires after ttl."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove cache entry."""

    def purge_expired(self) -> int:
        """Drop expired entries eagerly. Returns how many were removed.

        Backends that expire server-side have nothing to do.
        """
        return 0

    def close(self) -> None:
        """Release backend resources. No-op by default."""
