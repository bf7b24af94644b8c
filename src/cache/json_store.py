# src/cache/json_store.py — v1
"""JSON file-based cache store (default CACHE_BACKEND=json).

Stores each payload as an individual JSON envelope under CACHE_ROOT, with
its expiry time alongside. Expired files are removed on read.
"""

from __future__ import annotations

import binascii
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path

from pydantic import ValidationError

from kitebuilds.cache.base_cache_store import BaseCacheStore, CacheStoreError
from kitebuilds.cache.models import CacheEnvelope

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """File-based cache store using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, key: str) -> bytes | None:
        """Retrieve payload by key."""
        path = self._entry_path(key)
        if not path.exists():
            return None
        try:
            envelope = CacheEnvelope.model_validate_json(path.read_text(encoding="utf-8"))
            payload = envelope.payload
        except OSError as e:
            raise CacheStoreError(f"Failed to read cache entry {key}: {e}") from e
        except (UnicodeDecodeError, ValidationError, binascii.Error) as e:
            logger.warning("Discarding unreadable cache entry %s: %s", key, e)
            path.unlink(missing_ok=True)
            return None

        if envelope.is_expired():
            path.unlink(missing_ok=True)
            return None
        return payload

    async def put(self, key: str, value: bytes, ttl: timedelta) -> None:
        """Store a payload."""
        path = self._entry_path(key)
        envelope = CacheEnvelope.wrap(key, value, ttl, now=datetime.now(timezone.utc))
        tmp = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(envelope.model_dump_json(indent=2), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise CacheStoreError(f"Failed to write cache entry {key}: {e}") from e

    async def delete(self, key: str) -> None:
        """Remove a payload."""
        path = self._entry_path(key)
        if path.exists():
            path.unlink()

    def purge_expired(self) -> int:
        """Delete every expired entry file. Returns how many were removed."""
        removed = 0
        now = datetime.now(timezone.utc)
        for path in self._root.glob("*.json"):
            try:
                envelope = CacheEnvelope.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, ValidationError):
                continue
            if envelope.is_expired(now):
                path.unlink(missing_ok=True)
                removed += 1
        return removed

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"
