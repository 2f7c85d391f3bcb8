"""
Proxy caching package.

Cache stores used as a best-effort accelerator in front of the upstream
provider. Entries are superseded on refresh and kept past their TTL so they
can be served when upstream fails.
"""

from .keys import derive_cache_key, sanitize_identifier
from .store import CacheLookup, CacheStore
from .eviction import EvictionPolicy, LRUEviction, NoEviction, TTLSweepEviction
from .file_store import FileCacheStore
from .memory_store import MemoryCacheStore
from .redis_store import RedisCacheStore
from .factory import create_cache_store, create_eviction_policy

__all__ = [
    "CacheLookup",
    "CacheStore",
    "EvictionPolicy",
    "FileCacheStore",
    "LRUEviction",
    "MemoryCacheStore",
    "NoEviction",
    "RedisCacheStore",
    "TTLSweepEviction",
    "create_cache_store",
    "create_eviction_policy",
    "derive_cache_key",
    "sanitize_identifier",
]
