"""
Persistent key-value store for cache entries.

String values keyed by string, surviving process restarts. Every
operation is async and reports failures through StoreResult instead of
raising, so callers decide explicitly what to do with a failed write.

Example:
    store = FileKeyValueStore(settings.store_dir)
    await store.set("tella-videos-cache-all", json_text)
    result = await store.get("tella-videos-cache-all")
    if result.ok and result.value is not None:
        ...
"""

import asyncio
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

from catalog_sync.config import Settings
from catalog_sync.models.cache import CacheError, StoreResult

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Protocol for the persistent string store.

    Keys are partitioned by the cache components (no collisions by
    construction); each `set` overwrites the whole value.
    """

    async def get(self, key: str) -> StoreResult[str]:
        """Read a value. `value` is None when the key is absent."""
        ...

    async def set(self, key: str, value: str) -> StoreResult[None]:
        """Write (overwrite) a value."""
        ...

    async def remove(self, key: str) -> StoreResult[None]:
        """Delete a value. Removing a missing key succeeds."""
        ...


class MemoryKeyValueStore:
    """Dict-backed store for tests and ephemeral runs."""

    def __init__(self, initial: dict[str, str] | None = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> StoreResult[str]:
        return StoreResult.success(self.data.get(key))

    async def set(self, key: str, value: str) -> StoreResult[None]:
        self.data[key] = value
        return StoreResult.success()

    async def remove(self, key: str) -> StoreResult[None]:
        self.data.pop(key, None)
        return StoreResult.success()


class FileKeyValueStore:
    """
    File-backed store: one file per key inside a directory.

    Writes go to a temporary file that replaces the target, so a crash
    mid-write never leaves a truncated entry behind. File I/O runs in a
    worker thread to keep the event loop responsive.

    Attributes:
        directory: Root directory of the store
    """

    SUFFIX = ".json"

    def __init__(self, directory: Path):
        """
        Initialize file store.

        Args:
            directory: Directory for value files (created lazily)
        """
        self.directory = Path(directory)

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileKeyValueStore":
        """Create store rooted at settings.store_dir."""
        return cls(settings.store_dir)

    def path_for(self, key: str) -> Path:
        """Map a key to its backing file."""
        safe = _UNSAFE_KEY_CHARS.sub("_", key)
        return self.directory / f"{safe}{self.SUFFIX}"

    async def get(self, key: str) -> StoreResult[str]:
        path = self.path_for(key)
        try:
            value = await asyncio.to_thread(self._read, path)
        except OSError as e:
            return StoreResult.failure(
                CacheError("Failed to read store file", key, "get", e)
            )
        return StoreResult.success(value)

    async def set(self, key: str, value: str) -> StoreResult[None]:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(self._write, path, value)
        except OSError as e:
            return StoreResult.failure(
                CacheError("Failed to write store file", key, "set", e)
            )
        logger.debug(f"Stored {key} ({len(value)} chars)")
        return StoreResult.success()

    async def remove(self, key: str) -> StoreResult[None]:
        path = self.path_for(key)
        try:
            await asyncio.to_thread(path.unlink, True)
        except OSError as e:
            return StoreResult.failure(
                CacheError("Failed to remove store file", key, "remove", e)
            )
        return StoreResult.success()

    @staticmethod
    def _read(path: Path) -> str | None:
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    @staticmethod
    def _write(path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Private temp file per write: concurrent writers of one key never share it
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name + ".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
