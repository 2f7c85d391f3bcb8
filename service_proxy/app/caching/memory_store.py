"""
Process-local cache store for development and tests.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

from .store import CacheStore


class MemoryCacheStore(CacheStore):
    """Entries kept as serialized snapshots so callers cannot mutate them."""

    backend = "memory"

    def __init__(self, ttl_seconds: float, **kwargs):
        super().__init__(ttl_seconds, **kwargs)
        self._rows: Dict[str, Tuple[str, float]] = {}

    async def _load(self, key: str) -> Optional[Tuple[Any, float]]:
        row = self._rows.get(key)
        if row is None:
            return None
        content, written_at = row
        return json.loads(content), written_at

    async def _save(self, key: str, payload: Any, written_at: float) -> None:
        self._rows[key] = (json.dumps(payload, ensure_ascii=False), written_at)

    async def _delete(self, key: str) -> None:
        self._rows.pop(key, None)

    async def _list(self) -> List[Tuple[str, float]]:
        return [(key, written_at) for key, (_, written_at) in self._rows.items()]

    def __len__(self) -> int:
        return len(self._rows)
