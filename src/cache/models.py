# src/cache/models.py — v1
"""Cache domain models: CacheEnvelope, BucketResult."""

from __future__ import annotations

import base64
from datetime import datetime, timedelta, timezone
from typing import Literal

from pydantic import BaseModel, Field

from kitebuilds.core.models import Build, TimeInterval


class CacheEnvelope(BaseModel):
    """On-disk record of one cached payload (JSON backend)."""

    key: str
    expires_at: datetime
    payload_b64: str
    stored_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def wrap(cls, key: str, value: bytes, ttl: timedelta, now: datetime | None = None) -> CacheEnvelope:
        now = now or datetime.now(timezone.utc)
        return cls(
            key=key,
            expires_at=now + ttl,
            payload_b64=base64.b64encode(value).decode("ascii"),
            stored_at=now,
        )

    @property
    def payload(self) -> bytes:
        return base64.b64decode(self.payload_b64, validate=True)

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at


class BucketResult(BaseModel):
    """Builds of one bucket and where they came from."""

    interval: TimeInterval
    builds: list[Build] = Field(default_factory=list)
    source: Literal["cache", "remote"]
    ttl: timedelta | None = None
    cache_written: bool = False
