# tests/unit/cache/test_gateway.py — v1
"""Tests for cache/gateway.py — read-through bucket cache."""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from kitebuilds.buildkite.adapter import RemoteQueryAdapter
from kitebuilds.buildkite.base_client import BuildSourceError
from kitebuilds.cache.codec import decode_builds, encode_builds
from kitebuilds.cache.gateway import BucketCacheGateway
from kitebuilds.cache.json_store import JsonCacheStore
from kitebuilds.cache.sqlite_store import SqliteCacheStore
from kitebuilds.core.models import TimeInterval

DAY = TimeInterval(
    start=datetime(2024, 1, 1, tzinfo=timezone.utc),
    end=datetime(2024, 1, 2, tzinfo=timezone.utc),
)
TTL = timedelta(days=60)


@pytest.fixture
def records(record_factory):
    base = datetime(2024, 1, 1, 1, tzinfo=timezone.utc)
    return [record_factory(f"b-{i}", base + timedelta(hours=i)) for i in range(3)]


@pytest.fixture
def gateway(fake_source, memory_store, records):
    fake_source.records = records
    return BucketCacheGateway(memory_store, RemoteQueryAdapter(fake_source, "acme"))


class TestBucketCacheGateway:
    @pytest.mark.asyncio
    async def test_miss_fetches_remote_and_writes_through(self, gateway, fake_source, memory_store):
        builds = await gateway.fetch(DAY, TTL)
        assert [b.id for b in builds] == ["b-0", "b-1", "b-2"]
        assert len(fake_source.calls) == 1
        cached = await memory_store.get(DAY.cache_key)
        assert decode_builds(cached) == builds

    @pytest.mark.asyncio
    async def test_remote_query_is_passed_only_for_bucket(self, gateway, fake_source):
        await gateway.fetch(DAY, TTL)
        org, options = fake_source.calls[0]
        assert org == "acme"
        assert options.state == ["passed"]
        assert options.per_page == 100
        assert (options.created_from, options.created_to) == (DAY.start, DAY.end)

    @pytest.mark.asyncio
    async def test_second_fetch_served_from_cache(self, gateway, fake_source):
        first = await gateway.fetch(DAY, TTL)
        second = await gateway.fetch(DAY, TTL)
        assert first == second
        assert len(fake_source.calls) == 1

    @pytest.mark.asyncio
    async def test_hit_does_not_revalidate(self, gateway, fake_source, memory_store, build_factory):
        stale = [build_factory("cached-only")]
        await memory_store.put(DAY.cache_key, encode_builds(stale), TTL)
        assert await gateway.fetch(DAY, TTL) == stale
        assert fake_source.calls == []

    @pytest.mark.asyncio
    async def test_bucket_result_reports_source(self, gateway):
        first = await gateway.fetch_bucket(DAY, TTL)
        assert first.source == "remote"
        assert first.cache_written is True
        assert first.ttl == TTL
        second = await gateway.fetch_bucket(DAY, TTL)
        assert second.source == "cache"

    @pytest.mark.asyncio
    async def test_uses_given_ttl(self, fake_source, records):
        class RecordingStore:
            def __init__(self):
                self.puts = []

            async def get(self, key):
                return None

            async def put(self, key, value, ttl):
                self.puts.append((key, ttl))

        fake_source.records = records
        store = RecordingStore()
        gw = BucketCacheGateway(store, RemoteQueryAdapter(fake_source, "acme"))  # type: ignore[arg-type]
        await gw.fetch(DAY, timedelta(minutes=10))
        assert store.puts == [(DAY.cache_key, timedelta(minutes=10))]

    @pytest.mark.asyncio
    async def test_corrupt_payload_treated_as_miss(self, gateway, fake_source, memory_store):
        await memory_store.put(DAY.cache_key, b"garbage", TTL)
        builds = await gateway.fetch(DAY, TTL)
        assert len(builds) == 3
        assert len(fake_source.calls) == 1
        # Overwritten with a valid payload
        assert decode_builds(await memory_store.get(DAY.cache_key)) == builds

    @pytest.mark.asyncio
    async def test_read_failure_treated_as_miss(self, fake_source, records, failing_store_factory):
        fake_source.records = records
        store = failing_store_factory(fail_get=True, fail_put=False)
        gw = BucketCacheGateway(store, RemoteQueryAdapter(fake_source, "acme"))
        assert len(await gw.fetch(DAY, TTL)) == 3

    @pytest.mark.asyncio
    async def test_write_failure_still_returns_builds(self, fake_source, records, failing_store_factory):
        fake_source.records = records
        store = failing_store_factory(fail_put=True)
        gw = BucketCacheGateway(store, RemoteQueryAdapter(fake_source, "acme"))
        result = await gw.fetch_bucket(DAY, TTL)
        assert len(result.builds) == 3
        assert result.cache_written is False
        assert store.put_attempts == 1

    @pytest.mark.asyncio
    async def test_remote_error_propagates_and_nothing_cached(
        self, gateway, fake_source, memory_store, build_source_error,
    ):
        fake_source.fail_on[1] = build_source_error
        with pytest.raises(BuildSourceError):
            await gateway.fetch(DAY, TTL)
        assert await memory_store.get(DAY.cache_key) is None

    @pytest.mark.asyncio
    async def test_empty_bucket_is_cached(self, memory_store, fake_source):
        gw = BucketCacheGateway(memory_store, RemoteQueryAdapter(fake_source, "acme"))
        assert await gw.fetch(DAY, TTL) == []
        assert await gw.fetch(DAY, TTL) == []
        assert len(fake_source.calls) == 1


class TestDamagedBackendEntries:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [
        b"\xff\xfe\x00garbage",
        b'{"key": "k", "expires_at": "2999-01-01T00:00:00Z", "payload_b64": "abc"}',
    ])
    async def test_damaged_json_file_is_refetched(self, tmp_cache_dir, fake_source, records, content):
        fake_source.records = records
        (tmp_cache_dir / f"{DAY.cache_key}.json").write_bytes(content)
        gw = BucketCacheGateway(JsonCacheStore(tmp_cache_dir), RemoteQueryAdapter(fake_source, "acme"))

        builds = await gw.fetch(DAY, TTL)

        assert [b.id for b in builds] == ["b-0", "b-1", "b-2"]
        assert len(fake_source.calls) == 1

    @pytest.mark.asyncio
    async def test_sqlite_failure_while_dropping_expired_row_is_miss(
        self, tmp_path, fake_source, records,
    ):
        fake_source.records = records
        store = SqliteCacheStore(tmp_path / "cache.db")
        real_conn = store._conn
        expired = MagicMock()
        expired.fetchone.return_value = (b"payload", 0.0)

        def execute(sql, params=()):
            if sql.startswith("SELECT"):
                return expired
            raise sqlite3.OperationalError("database is locked")

        store._conn = MagicMock(execute=MagicMock(side_effect=execute))
        gw = BucketCacheGateway(store, RemoteQueryAdapter(fake_source, "acme"))
        try:
            assert len(await gw.fetch(DAY, TTL)) == 3
        finally:
            real_conn.close()
