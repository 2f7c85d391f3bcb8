"""
Build the configured cache store.
"""

from typing import Callable, Optional

from shared.config import ProxyConfig
from shared.metrics import MetricsCollector

from .eviction import EvictionPolicy, LRUEviction, NoEviction, TTLSweepEviction
from .file_store import FileCacheStore
from .memory_store import MemoryCacheStore
from .redis_store import RedisCacheStore
from .store import CacheStore


def create_eviction_policy(config: ProxyConfig) -> EvictionPolicy:
    """Instantiate the eviction policy named in the config."""
    if config.eviction_policy == "lru":
        return LRUEviction(config.cache_max_entries)
    if config.eviction_policy == "ttl_sweep":
        if config.cache_max_age_seconds <= config.cache_ttl_seconds:
            raise ValueError("cache_max_age_seconds must exceed cache_ttl_seconds to keep stale fallbacks")
        return TTLSweepEviction(config.cache_max_age_seconds)
    return NoEviction()


def create_cache_store(
    config: ProxyConfig,
    *,
    metrics: Optional[MetricsCollector] = None,
    clock: Optional[Callable[[], float]] = None,
) -> CacheStore:
    """Instantiate the cache backend named in the config."""
    options = {
        "eviction": create_eviction_policy(config),
        "metrics": metrics,
        "clock": clock,
    }
    if config.cache_backend == "redis":
        return RedisCacheStore(config.redis_url, config.cache_ttl_seconds, **options)
    if config.cache_backend == "memory":
        return MemoryCacheStore(config.cache_ttl_seconds, **options)
    return FileCacheStore(config.resolved_cache_dir(), config.cache_ttl_seconds, **options)
