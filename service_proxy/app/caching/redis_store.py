"""
Redis-backed cache store.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional, Tuple

import redis.asyncio as redis

from shared.errors import CacheError

from .keys import KEY_PREFIX
from .store import CacheStore


class RedisCacheStore(CacheStore):
    """Entries stored as JSON envelopes ``{"payload": ..., "written_at": ...}``.

    No Redis expiry is set: stale entries must stay readable as a fallback.
    Bounding memory is the eviction policy's job.
    """

    backend = "redis"

    def __init__(self, redis_url: str, ttl_seconds: float, *, namespace: str = "proxy", client=None, **kwargs):
        super().__init__(ttl_seconds, **kwargs)
        self.redis_url = redis_url
        self.namespace = namespace
        self._redis = client or redis.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
        )

    def _redis_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def _load(self, key: str) -> Optional[Tuple[Any, float]]:
        raw = await self._redis.get(self._redis_key(key))
        if raw is None:
            return None

        try:
            envelope = json.loads(raw)
            return envelope["payload"], float(envelope["written_at"])
        except (ValueError, TypeError, KeyError) as exc:
            raise CacheError(key, "Malformed cache envelope") from exc

    async def _save(self, key: str, payload: Any, written_at: float) -> None:
        envelope = json.dumps({"payload": payload, "written_at": written_at}, ensure_ascii=False)
        await self._redis.set(self._redis_key(key), envelope)

    async def _delete(self, key: str) -> None:
        await self._redis.delete(self._redis_key(key))

    async def _list(self) -> List[Tuple[str, float]]:
        rows = []
        prefix_len = len(self.namespace) + 1
        async for redis_key in self._redis.scan_iter(match=f"{self.namespace}:{KEY_PREFIX}*"):
            key = redis_key[prefix_len:]
            try:
                loaded = await self._load(key)
            except CacheError:
                # Unreadable entries are the first candidates for removal
                rows.append((key, 0.0))
                continue
            if loaded is not None:
                rows.append((key, loaded[1]))
        return rows

    async def ping(self) -> bool:
        """Return True when Redis responds to a ping."""
        try:
            return bool(await self._redis.ping())
        except Exception as exc:
            self.logger.error("Redis health check failed", error=str(exc))
            return False

    async def close(self) -> None:
        """Close Redis connections."""
        try:
            await self._redis.aclose()
        except Exception as exc:  # pragma: no cover - close is best effort
            self.logger.debug("Redis close failed", error=str(exc))
