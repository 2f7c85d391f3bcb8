"""
Unit tests for the Redis cache store.
"""

import pytest
import fnmatch
import json
from unittest.mock import AsyncMock

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_proxy.app.caching.eviction import LRUEviction
from service_proxy.app.caching.redis_store import RedisCacheStore

from helpers import FakeClock

TTL = 3600.0


class FakeRedis:
    """Dict-backed stand-in for redis.asyncio.Redis with decode_responses=True."""

    def __init__(self):
        self.data = {}
        self.set_calls = []

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, **kwargs):
        self.set_calls.append((key, kwargs))
        self.data[key] = value
        return True

    async def delete(self, key):
        return 1 if self.data.pop(key, None) is not None else 0

    async def scan_iter(self, match=None):
        for key in list(self.data):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    async def ping(self):
        return True

    async def aclose(self):
        return None


class TestRedisCacheStore:
    """Test cases for RedisCacheStore."""

    @pytest.fixture
    def redis_client(self):
        return FakeRedis()

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def store(self, redis_client, clock):
        return RedisCacheStore("redis://localhost:6379/0", TTL, client=redis_client, clock=clock)

    @pytest.mark.asyncio
    async def test_write_stores_envelope_without_expiry(self, store, redis_client, clock):
        """Entries carry their write time and never expire in Redis."""
        await store.write("_cache_resource_abc_page_1", {"v": 1})

        raw = redis_client.data["proxy:_cache_resource_abc_page_1"]
        assert json.loads(raw) == {"payload": {"v": 1}, "written_at": clock()}
        assert redis_client.set_calls == [("proxy:_cache_resource_abc_page_1", {})]

    @pytest.mark.asyncio
    async def test_stale_entry_still_readable(self, store, clock):
        """Entries past the TTL are returned flagged as stale."""
        await store.write("_cache_resource_abc", {"v": 1})
        clock.advance(TTL + 1)

        lookup = await store.read("_cache_resource_abc")

        assert lookup.exists is True
        assert lookup.is_stale is True
        assert lookup.payload == {"v": 1}

    @pytest.mark.asyncio
    async def test_malformed_envelope_is_miss(self, store, redis_client):
        """A value without the envelope shape degrades to a miss."""
        redis_client.data["proxy:_cache_resource_abc"] = json.dumps({"v": 1})

        lookup = await store.read("_cache_resource_abc")

        assert lookup.exists is False
        assert lookup.error is True

    @pytest.mark.asyncio
    async def test_connection_error_is_miss(self, store, redis_client):
        """Backend outages look like a miss to the caller."""
        redis_client.get = AsyncMock(side_effect=ConnectionError("redis down"))

        lookup = await store.read("_cache_resource_abc")

        assert lookup.exists is False
        assert lookup.error is True

    @pytest.mark.asyncio
    async def test_write_error_swallowed(self, store, redis_client):
        """Backend outages on write never raise."""
        redis_client.set = AsyncMock(side_effect=ConnectionError("redis down"))

        assert await store.write("_cache_resource_abc", {"v": 1}) is None

    @pytest.mark.asyncio
    async def test_lru_eviction_uses_scan(self, redis_client, clock):
        """Eviction sees only this store's namespace."""
        redis_client.data["other:_cache_resource_x"] = "ignored"
        store = RedisCacheStore(
            "redis://localhost:6379/0", TTL, client=redis_client, clock=clock, eviction=LRUEviction(1)
        )

        await store.write("_cache_resource_a", {"v": 1})
        clock.advance(1)
        await store.write("_cache_resource_b", {"v": 2})

        assert "proxy:_cache_resource_a" not in redis_client.data
        assert "proxy:_cache_resource_b" in redis_client.data
        assert "other:_cache_resource_x" in redis_client.data

    @pytest.mark.asyncio
    async def test_ping(self, store):
        assert await store.ping() is True

    @pytest.mark.asyncio
    async def test_ping_reports_outage(self, store, redis_client):
        """A Redis outage is reported as unreachable, not raised."""
        redis_client.ping = AsyncMock(side_effect=ConnectionError("redis down"))

        assert await store.ping() is False
