# src/cache/sqlite_store.py — v1
"""SQLite-based cache store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency.
Better than JSON files once a cache holds years of daily buckets.
"""

from __future__ import annotations

import logging
import sqlite3
import time
from datetime import timedelta
from pathlib import Path

from kitebuilds.cache.base_cache_store import BaseCacheStore, CacheStoreError

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    key TEXT PRIMARY KEY,
    payload BLOB NOT NULL,
    expires_at REAL NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_expires_at ON cache_entries(expires_at);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed cache store for better performance at scale."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get(self, key: str) -> bytes | None:
        """Retrieve payload by key."""
        try:
            cursor = self._conn.execute(
                "SELECT payload, expires_at FROM cache_entries WHERE key = ?", (key,)
            )
            row = cursor.fetchone()
        except sqlite3.Error as e:
            raise CacheStoreError(f"Failed to read cache entry {key}: {e}") from e
        if row is None:
            return None
        payload, expires_at = row
        if time.time() >= expires_at:
            await self.delete(key)
            return None
        return bytes(payload)

    async def put(self, key: str, value: bytes, ttl: timedelta) -> None:
        """Store a payload (upsert)."""
        try:
            self._conn.execute(
                """INSERT OR REPLACE INTO cache_entries (key, payload, expires_at)
                   VALUES (?, ?, ?)""",
                (key, sqlite3.Binary(value), time.time() + ttl.total_seconds()),
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise CacheStoreError(f"Failed to write cache entry {key}: {e}") from e

    async def delete(self, key: str) -> None:
        """Remove a payload."""
        try:
            self._conn.execute("DELETE FROM cache_entries WHERE key = ?", (key,))
            self._conn.commit()
        except sqlite3.Error as e:
            raise CacheStoreError(f"Failed to delete cache entry {key}: {e}") from e

    def purge_expired(self) -> int:
        """Delete expired rows. Returns how many were removed."""
        try:
            cursor = self._conn.execute(
                "DELETE FROM cache_entries WHERE expires_at <= ?", (time.time(),)
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise CacheStoreError(f"Failed to purge expired entries: {e}") from e
        return cursor.rowcount

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
