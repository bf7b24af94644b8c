# src/logging/context.py — v1
"""Contextual logging support: attach org and bucket to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Set once per listing call, then per bucket.
_org: contextvars.ContextVar[str | None] = contextvars.ContextVar("org", default=None)
_bucket: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "bucket", default=None
)


@dataclass
class LogContext:
    """Snapshot of current logging context."""

    org: str | None = None
    bucket: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(org=_org.get(), bucket=_bucket.get())


def set_query_context(org: str) -> None:
    """Set listing-level context."""
    _org.set(org)
    _bucket.set(None)


def set_bucket_context(bucket: str | None) -> None:
    """Set the cache key of the bucket being processed."""
    _bucket.set(bucket)


def clear_context() -> None:
    """Reset all context variables."""
    _org.set(None)
    _bucket.set(None)
