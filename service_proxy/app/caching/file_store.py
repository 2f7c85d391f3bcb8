"""
File-backed cache store.

One JSON file per key. The file mtime is the entry's write timestamp, so the
cache survives restarts and needs no index.

Keys too long for a file name are stored under a truncated name ending in
the sha256 of the full key, with the full key kept in a ``.key`` sidecar.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
import os
import tempfile
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from .keys import KEY_PREFIX
from .store import CacheStore

_SUFFIX = ".json"
_KEY_SUFFIX = ".key"
MAX_FILENAME_BYTES = 200

# Cache files follow the process umask like any other file the service writes
_UMASK = os.umask(0)
os.umask(_UMASK)
FILE_MODE = 0o666 & ~_UMASK


class FileCacheStore(CacheStore):
    """Cache entries stored as ``<cache_dir>/<key>.json``."""

    backend = "file"

    def __init__(self, cache_dir: Union[str, Path], ttl_seconds: float, **kwargs):
        super().__init__(ttl_seconds, **kwargs)
        self.cache_dir = Path(cache_dir)

    @staticmethod
    def filename_stem(key: str) -> str:
        """File name (without suffix) for ``key``, bounded to ``MAX_FILENAME_BYTES``."""
        encoded = key.encode("utf-8")
        if len(encoded) + len(_SUFFIX) <= MAX_FILENAME_BYTES:
            return key
        digest = hashlib.sha256(encoded).hexdigest()
        keep = MAX_FILENAME_BYTES - len(_SUFFIX) - len(digest) - 1
        head = encoded[:keep].decode("utf-8", errors="ignore")
        return f"{head}_{digest}"

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{self.filename_stem(key)}{_SUFFIX}"

    def _sidecar_for(self, key: str) -> Optional[Path]:
        stem = self.filename_stem(key)
        if stem == key:
            return None
        return self.cache_dir / f"{stem}{_KEY_SUFFIX}"

    async def _load(self, key: str) -> Optional[Tuple[Any, float]]:
        return await asyncio.to_thread(self._load_sync, self.path_for(key))

    async def _save(self, key: str, payload: Any, written_at: float) -> None:
        content = json.dumps(payload, ensure_ascii=False)
        await asyncio.to_thread(self._save_sync, key, content, written_at)

    async def _delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete_sync, key)

    async def _list(self) -> List[Tuple[str, float]]:
        return await asyncio.to_thread(self._list_sync)

    @staticmethod
    def _load_sync(path: Path) -> Optional[Tuple[Any, float]]:
        try:
            written_at = path.stat().st_mtime
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return json.loads(content), written_at

    def _save_sync(self, key: str, content: str, written_at: float) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        sidecar = self._sidecar_for(key)
        if sidecar is not None:
            self._replace(sidecar, key)
        self._replace(self.path_for(key), content, written_at)

    def _replace(self, path: Path, content: str, written_at: Optional[float] = None) -> None:
        # Write then rename so concurrent readers never see a partial file
        fd, tmp_name = tempfile.mkstemp(dir=self.cache_dir, prefix=".tmp", suffix=path.suffix)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.chmod(tmp_name, FILE_MODE)
            if written_at is not None:
                os.utime(tmp_name, (written_at, written_at))
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _delete_sync(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
        sidecar = self._sidecar_for(key)
        if sidecar is not None:
            sidecar.unlink(missing_ok=True)

    def _list_sync(self) -> List[Tuple[str, float]]:
        if not self.cache_dir.is_dir():
            return []
        rows = []
        for path in self.cache_dir.glob(f"{KEY_PREFIX}*{_SUFFIX}"):
            try:
                written_at = path.stat().st_mtime
                sidecar = path.with_suffix(_KEY_SUFFIX)
                key = sidecar.read_text(encoding="utf-8") if sidecar.exists() else path.stem
            except FileNotFoundError:
                continue
            rows.append((key, written_at))
        return rows
