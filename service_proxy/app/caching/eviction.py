"""
Pluggable eviction policies for the cache store.

Policies run after every successful write. Stale entries are still valuable
as a fallback when upstream fails, so a policy must never remove an entry
just because it is past the freshness TTL.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import TYPE_CHECKING, Optional

from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .store import CacheStore


class EvictionPolicy:
    """Base policy. Every hook is a no-op."""

    name = "none"

    def record_access(self, key: str) -> None:
        """Note a read or write of ``key``."""

    def forget(self, key: str) -> None:
        """Drop any bookkeeping for ``key``."""

    async def after_write(self, store: "CacheStore", key: str) -> None:
        """Hook invoked once ``key`` has been persisted."""


class NoEviction(EvictionPolicy):
    """Unbounded retention: entries are superseded, never purged."""


class LRUEviction(EvictionPolicy):
    """Bound the number of entries, evicting the least recently used."""

    name = "lru"

    def __init__(self, max_entries: int):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._order: "OrderedDict[str, None]" = OrderedDict()
        self._seeded = False
        self.logger = get_logger("proxy.cache.eviction")

    def record_access(self, key: str) -> None:
        self._order[key] = None
        self._order.move_to_end(key)

    def forget(self, key: str) -> None:
        self._order.pop(key, None)

    async def after_write(self, store: "CacheStore", key: str) -> None:
        if not self._seeded:
            await self._seed(store)
        self.record_access(key)

        while len(self._order) > self.max_entries:
            victim = next(iter(self._order))
            # evict() forgets the key once the delete has gone through
            await store.evict(victim)
            self.logger.debug("LRU eviction", key=victim, max_entries=self.max_entries)

    async def _seed(self, store: "CacheStore") -> None:
        """Pick up entries persisted before this process started, oldest first."""
        known = OrderedDict(self._order)
        self._order.clear()
        for existing, _ in sorted(await store.entries(), key=lambda row: row[1]):
            if existing not in known:
                self._order[existing] = None
        self._order.update(known)
        self._seeded = True


class TTLSweepEviction(EvictionPolicy):
    """Periodically delete entries older than ``max_age_seconds``."""

    name = "ttl_sweep"

    def __init__(self, max_age_seconds: float, sweep_interval_seconds: Optional[float] = None):
        if max_age_seconds <= 0:
            raise ValueError("max_age_seconds must be positive")
        self.max_age_seconds = max_age_seconds
        self.sweep_interval_seconds = (
            sweep_interval_seconds if sweep_interval_seconds is not None else min(60.0, max_age_seconds)
        )
        self._last_sweep: Optional[float] = None
        self.logger = get_logger("proxy.cache.eviction")

    async def after_write(self, store: "CacheStore", key: str) -> None:
        now = store.now()
        if self._last_sweep is not None and now - self._last_sweep < self.sweep_interval_seconds:
            return
        self._last_sweep = now

        removed = 0
        for existing, written_at in await store.entries():
            if now - written_at > self.max_age_seconds:
                await store.evict(existing)
                removed += 1
        if removed:
            self.logger.info("TTL sweep removed entries", removed=removed, max_age_seconds=self.max_age_seconds)
