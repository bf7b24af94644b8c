# src/cache/codec.py — v1
"""Bucket payload codec: list[Build] <-> gzip-compressed JSON array.

Compression keeps large buckets under typical per-value limits of shared
caches (memcached caps values at 1 MB).
"""

from __future__ import annotations

import gzip
import zlib

from pydantic import TypeAdapter, ValidationError

from kitebuilds.core.models import Build, TimeInterval

_BUILD_LIST = TypeAdapter(list[Build])


class CorruptPayloadError(Exception):
    """Raised when a cached payload cannot be decompressed or parsed."""


def cache_key(interval: TimeInterval) -> str:
    """Cache key for a bucket: ``"<startUnix>-<endUnix>"``."""
    return interval.cache_key


def encode_builds(builds: list[Build]) -> bytes:
    """Serialize builds to JSON (historical field names) and gzip it."""
    raw = _BUILD_LIST.dump_json(builds, by_alias=True)
    return gzip.compress(raw)


def decode_builds(payload: bytes) -> list[Build]:
    """Inverse of encode_builds.

    Raises:
        CorruptPayloadError: If the payload is not gzip or not a build list.
    """
    try:
        raw = gzip.decompress(payload)
    except (OSError, EOFError, zlib.error) as e:
        raise CorruptPayloadError(f"unable to decompress payload: {e}") from e

    # Empty buckets written by older consumers serialize as JSON null.
    if raw.strip() == b"null":
        return []

    try:
        builds = _BUILD_LIST.validate_json(raw)
    except ValidationError as e:
        raise CorruptPayloadError(f"unable to parse payload: {e}") from e
    return builds
