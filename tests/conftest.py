# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides sample builds, raw API records, a scripted fake build source and
in-memory/failing cache stores. No network access; all I/O is local.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from kitebuilds.buildkite.base_client import BaseBuildSource, BuildSourceError
from kitebuilds.buildkite.models import BuildListOptions, BuildPage
from kitebuilds.cache.base_cache_store import BaseCacheStore, CacheStoreError
from kitebuilds.cache.memory_store import MemoryCacheStore
from kitebuilds.core.models import Build, Pipeline


# === HELPERS ===


def make_build(
    build_id: str = "b-001",
    created_at: datetime | None = None,
    pipeline: str = "deploy",
    branch: str = "main",
) -> Build:
    """Passed build with consistent timestamps derived from created_at."""
    created = created_at or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    return Build(
        id=build_id,
        pipeline=Pipeline(name=pipeline),
        branch=branch,
        created_at=created,
        scheduled_at=created,
        started_at=created + timedelta(minutes=1),
        finished_at=created + timedelta(minutes=11),
    )


def make_record(
    build_id: str = "b-001",
    created_at: datetime | None = None,
    pipeline: str = "deploy",
    branch: str = "main",
) -> dict[str, Any]:
    """Raw Buildkite REST API build object (subset)."""
    created = created_at or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def _fmt(value: datetime) -> str:
        return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")

    return {
        "id": build_id,
        "number": 1,
        "state": "passed",
        "branch": branch,
        "pipeline": {"name": pipeline, "slug": pipeline},
        "created_at": _fmt(created),
        "scheduled_at": _fmt(created),
        "started_at": _fmt(created + timedelta(minutes=1)),
        "finished_at": _fmt(created + timedelta(minutes=11)),
    }


class FakeBuildSource(BaseBuildSource):
    """Serves raw records filtered by created_at, paginated like the API.

    ``fail_on`` maps a call number (1-based) to an exception to raise.
    """

    def __init__(self, records: list[dict[str, Any]] | None = None) -> None:
        self.records = list(records or [])
        self.calls: list[tuple[str, BuildListOptions]] = []
        self.fail_on: dict[int, Exception] = {}
        self.closed = False

    async def list_builds_by_org(self, org: str, options: BuildListOptions) -> BuildPage:
        self.calls.append((org, options))
        if len(self.calls) in self.fail_on:
            raise self.fail_on[len(self.calls)]

        matching = [
            r for r in self.records
            if _in_window(r["created_at"], options.created_from, options.created_to)
        ]
        first = (options.page - 1) * options.per_page
        chunk = matching[first:first + options.per_page]
        has_more = first + options.per_page < len(matching)
        return BuildPage(records=chunk, next_page=options.page + 1 if has_more else None)

    async def aclose(self) -> None:
        self.closed = True


def _in_window(created: str, start: datetime | None, end: datetime | None) -> bool:
    value = datetime.fromisoformat(created.replace("Z", "+00:00"))
    if start is not None and value < start:
        return False
    if end is not None and value >= end:
        return False
    return True


class FailingCacheStore(BaseCacheStore):
    """Store whose reads and/or writes raise CacheStoreError."""

    def __init__(self, fail_get: bool = False, fail_put: bool = True) -> None:
        self._inner = MemoryCacheStore()
        self._fail_get = fail_get
        self._fail_put = fail_put
        self.put_attempts = 0

    async def get(self, key: str) -> bytes | None:
        if self._fail_get:
            raise CacheStoreError("simulated read failure")
        return await self._inner.get(key)

    async def put(self, key: str, value: bytes, ttl: timedelta) -> None:
        self.put_attempts += 1
        if self._fail_put:
            raise CacheStoreError("simulated write failure")
        await self._inner.put(key, value, ttl)

    async def delete(self, key: str) -> None:
        await self._inner.delete(key)


# === FIXTURES ===


@pytest.fixture
def sample_build() -> Build:
    return make_build()


@pytest.fixture
def sample_builds() -> list[Build]:
    base = datetime(2024, 1, 1, 6, 0, tzinfo=timezone.utc)
    return [
        make_build(f"b-{i:03d}", base + timedelta(hours=i), pipeline="deploy" if i % 2 else "test")
        for i in range(3)
    ]


@pytest.fixture
def fake_source() -> FakeBuildSource:
    return FakeBuildSource()


@pytest.fixture
def memory_store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture
def build_source_error() -> BuildSourceError:
    return BuildSourceError("HTTP 502 from upstream", status_code=502)


@pytest.fixture
def tmp_cache_dir(tmp_path):
    """Temporary cache directory."""
    cache = tmp_path / "cache"
    cache.mkdir()
    return cache


@pytest.fixture
def build_factory():
    """The make_build helper, for tests that need several builds."""
    return make_build


@pytest.fixture
def record_factory():
    """The make_record helper, for tests that need raw API records."""
    return make_record


@pytest.fixture
def failing_store_factory():
    return FailingCacheStore
