"""
Cache store contract shared by all backends.

The store is a best-effort accelerator, not a source of truth. Reads never
raise: anything other than a clean "not found" degrades to a miss. Writes are
fire-and-forget: failures are logged and counted, and ``write`` returns
nothing either way.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple

from shared.logging import get_logger

from .eviction import EvictionPolicy, NoEviction

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


@dataclass(frozen=True)
class CacheLookup:
    """Outcome of a cache read."""

    exists: bool
    payload: Any = None
    is_stale: bool = False
    written_at: Optional[float] = None
    error: bool = False

    @classmethod
    def miss(cls, *, error: bool = False) -> "CacheLookup":
        return cls(exists=False, error=error)

    @classmethod
    def found(cls, payload: Any, written_at: float, *, is_stale: bool) -> "CacheLookup":
        return cls(exists=True, payload=payload, is_stale=is_stale, written_at=written_at)


class CacheStore(ABC):
    """Key to (payload, written_at) mapping with TTL freshness evaluation."""

    backend = "abstract"

    def __init__(
        self,
        ttl_seconds: float,
        *,
        eviction: Optional[EvictionPolicy] = None,
        clock: Optional[Callable[[], float]] = None,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.eviction = eviction or NoEviction()
        self.metrics = metrics
        self._clock = clock or time.time
        self.logger = get_logger(f"proxy.cache.{self.backend}")

    def now(self) -> float:
        return self._clock()

    def is_stale(self, written_at: float, now: Optional[float] = None) -> bool:
        """An entry is stale once strictly more than the TTL has elapsed."""
        current = self.now() if now is None else now
        return (current - written_at) > self.ttl_seconds

    async def read(self, key: str) -> CacheLookup:
        """Read ``key``; failures other than absence degrade to a miss."""
        try:
            row = await self._load(key)
        except Exception as exc:
            self.logger.warning("Cache read failed, treating as miss", key=key, error=str(exc))
            self._count_error("read")
            return CacheLookup.miss(error=True)

        if row is None:
            return CacheLookup.miss()

        payload, written_at = row
        self.eviction.record_access(key)
        return CacheLookup.found(payload, written_at, is_stale=self.is_stale(written_at))

    async def write(self, key: str, payload: Any) -> None:
        """Overwrite ``key`` with ``payload`` stamped now. Never raises."""
        try:
            await self._save(key, payload, self.now())
        except Exception as exc:
            self.logger.error("Cache write failed", key=key, error=str(exc))
            self._count_error("write")
            return

        try:
            await self.eviction.after_write(self, key)
        except Exception as exc:
            self.logger.error("Cache eviction failed", key=key, error=str(exc))
            self._count_error("evict")

    async def evict(self, key: str) -> None:
        """Remove ``key`` if present."""
        await self._delete(key)
        self.eviction.forget(key)
        self.logger.debug("Evicted cache entry", key=key)

    async def entries(self) -> List[Tuple[str, float]]:
        """List (key, written_at) for every stored entry."""
        return await self._list()

    async def ping(self) -> bool:
        """Return True when the backend is reachable."""
        return True

    async def close(self) -> None:
        """Release backend resources."""
        return None

    def _count_error(self, operation: str) -> None:
        if self.metrics:
            self.metrics.increment_counter("cache_errors_total", operation=operation)

    @abstractmethod
    async def _load(self, key: str) -> Optional[Tuple[Any, float]]:
        """Return (payload, written_at), None when absent; raise on any other failure."""

    @abstractmethod
    async def _save(self, key: str, payload: Any, written_at: float) -> None:
        """Persist the payload, replacing any previous entry."""

    @abstractmethod
    async def _delete(self, key: str) -> None:
        """Delete the entry; absent keys are ignored."""

    @abstractmethod
    async def _list(self) -> List[Tuple[str, float]]:
        """Enumerate stored entries."""
