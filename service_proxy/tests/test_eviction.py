"""
Unit tests for cache eviction policies.
"""

import pytest
from unittest.mock import AsyncMock, patch

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import ProxyConfig
from service_proxy.app.caching.eviction import LRUEviction, NoEviction, TTLSweepEviction
from service_proxy.app.caching.factory import create_cache_store, create_eviction_policy
from service_proxy.app.caching.file_store import FileCacheStore
from service_proxy.app.caching.memory_store import MemoryCacheStore

from helpers import FakeClock

TTL = 3600.0


class TestLRUEviction:
    """Test cases for LRUEviction."""

    @pytest.mark.asyncio
    async def test_evicts_least_recently_used(self):
        """Reading an entry protects it from the next eviction."""
        clock = FakeClock()
        store = MemoryCacheStore(TTL, clock=clock, eviction=LRUEviction(2))

        await store.write("a", {"v": "a"})
        await store.write("b", {"v": "b"})
        await store.read("a")
        await store.write("c", {"v": "c"})

        assert (await store.read("a")).exists is True
        assert (await store.read("b")).exists is False
        assert (await store.read("c")).exists is True
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_seeds_from_existing_files(self, tmp_path):
        """Entries written by an earlier process are evicted oldest first."""
        clock = FakeClock()
        seed = FileCacheStore(tmp_path, TTL, clock=clock)
        await seed.write("_cache_resource_old", {"v": 1})
        clock.advance(10)
        await seed.write("_cache_resource_newer", {"v": 2})
        clock.advance(10)

        store = FileCacheStore(tmp_path, TTL, clock=clock, eviction=LRUEviction(2))
        await store.write("_cache_resource_new", {"v": 3})

        assert (await store.read("_cache_resource_old")).exists is False
        assert (await store.read("_cache_resource_newer")).exists is True
        assert (await store.read("_cache_resource_new")).exists is True

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_victim_tracked(self):
        """A victim whose delete failed is retried on the next write."""
        clock = FakeClock()
        store = MemoryCacheStore(TTL, clock=clock, eviction=LRUEviction(1))

        await store.write("a", {"v": "a"})
        with patch.object(store, "_delete", AsyncMock(side_effect=OSError("delete failed"))):
            await store.write("b", {"v": "b"})
        assert len(store) == 2

        await store.write("c", {"v": "c"})

        assert len(store) == 1
        assert (await store.read("a")).exists is False
        assert (await store.read("c")).exists is True

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            LRUEviction(0)


class TestTTLSweepEviction:
    """Test cases for TTLSweepEviction."""

    @pytest.mark.asyncio
    async def test_sweeps_only_entries_past_max_age(self):
        """Stale entries younger than the max age survive as fallbacks."""
        clock = FakeClock()
        store = MemoryCacheStore(
            TTL,
            clock=clock,
            eviction=TTLSweepEviction(max_age_seconds=3 * TTL, sweep_interval_seconds=0),
        )

        await store.write("ancient", {"v": 1})
        clock.advance(2 * TTL)
        await store.write("stale", {"v": 2})
        clock.advance(1.5 * TTL)
        await store.write("fresh", {"v": 3})

        assert (await store.read("ancient")).exists is False
        stale = await store.read("stale")
        assert stale.exists is True
        assert stale.is_stale is True
        assert (await store.read("fresh")).exists is True

    @pytest.mark.asyncio
    async def test_respects_sweep_interval(self):
        """Sweeps run at most once per interval."""
        clock = FakeClock()
        store = MemoryCacheStore(
            TTL,
            clock=clock,
            eviction=TTLSweepEviction(max_age_seconds=100, sweep_interval_seconds=60),
        )

        await store.write("a", {"v": 1})
        clock.advance(150)
        await store.write("b", {"v": 2})
        assert (await store.read("a")).exists is False

        await store.write("c", {"v": 3})
        clock.advance(50)
        await store.write("d", {"v": 4})
        clock.advance(55)
        await store.write("e", {"v": 5})

        # The sweep on e's write saw c at 105s and d at 55s
        assert (await store.read("c")).exists is False
        assert (await store.read("d")).exists is True


class TestEvictionFactory:
    """Test cases for building stores from config."""

    def test_default_is_unbounded(self, tmp_path):
        config = ProxyConfig(cache_dir=str(tmp_path))
        assert isinstance(create_eviction_policy(config), NoEviction)

    def test_lru_from_config(self):
        policy = create_eviction_policy(ProxyConfig(eviction_policy="lru", cache_max_entries=7))
        assert isinstance(policy, LRUEviction)
        assert policy.max_entries == 7

    def test_ttl_sweep_must_outlive_ttl(self):
        """A max age at or below the TTL would delete stale fallbacks."""
        config = ProxyConfig(eviction_policy="ttl_sweep", cache_ttl_seconds=3600, cache_max_age_seconds=3600)
        with pytest.raises(ValueError):
            create_eviction_policy(config)

    def test_memory_backend(self):
        store = create_cache_store(ProxyConfig(cache_backend="memory", eviction_policy="lru"))
        assert isinstance(store, MemoryCacheStore)
        assert isinstance(store.eviction, LRUEviction)

    def test_file_backend_uses_resolved_dir(self, tmp_path):
        store = create_cache_store(ProxyConfig(cache_dir=str(tmp_path)))
        assert isinstance(store, FileCacheStore)
        assert store.cache_dir == tmp_path
