"""
Video collection cache.

Full-collection snapshots keyed by partition: one entry for all videos
and one per playlist, each with its own freshness clock. Entries are
fully replaced on every refresh and removed only by an explicit clear.

Example:
    cache = VideoCollectionCache(store)
    await cache.write(videos, playlist_id=None)
    entry = await cache.read()          # VideoCacheEntry | None
    entry = await cache.read("pl_123")  # independent partition
"""

import logging

from catalog_sync.models.cache import StoreResult, VideoCacheEntry, utc_now
from catalog_sync.models.schemas import VideoRecord
from catalog_sync.services.storage import KeyValueStore

from .base import discard, load_entry, remove_entry, save_entry

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "tella-videos-cache"


def cache_key(playlist_id: str | None = None) -> str:
    """Store key of a partition (None or "" = all videos)."""
    return f"{CACHE_KEY_PREFIX}-{playlist_id or 'all'}"


class VideoCollectionCache:
    """
    Snapshot cache for video collections.

    `read` never raises: corrupt or unreadable entries are a cache miss.
    `write` is best effort: persistence failures are logged and dropped.
    """

    def __init__(self, store: KeyValueStore):
        """
        Initialize video cache.

        Args:
            store: Persistent key-value store
        """
        self.store = store

    async def read_result(
        self, playlist_id: str | None = None
    ) -> StoreResult[VideoCacheEntry]:
        """Read a partition, keeping the failure (if any) for the caller."""
        return await load_entry(self.store, cache_key(playlist_id), VideoCacheEntry)

    async def read(self, playlist_id: str | None = None) -> VideoCacheEntry | None:
        """
        Read a partition snapshot.

        Args:
            playlist_id: Partition key (None = all videos)

        Returns:
            Cached snapshot or None on miss / any read error
        """
        result = await self.read_result(playlist_id)
        discard(result, f"read of {cache_key(playlist_id)}")
        if result.value is not None:
            logger.debug(
                f"Cache hit {cache_key(playlist_id)}: "
                f"{len(result.value.videos)} videos from {result.value.fetched_at}"
            )
        return result.value

    async def write_result(
        self, videos: list[VideoRecord], playlist_id: str | None = None
    ) -> tuple[VideoCacheEntry, StoreResult[None]]:
        """Overwrite a partition, returning the entry and the store outcome."""
        entry = VideoCacheEntry(
            videos=list(videos),
            fetched_at=utc_now(),
            playlist_id=playlist_id or None,
        )
        result = await save_entry(self.store, cache_key(playlist_id), entry)
        return entry, result

    async def write(
        self, videos: list[VideoRecord], playlist_id: str | None = None
    ) -> VideoCacheEntry:
        """
        Replace a partition snapshot with a fresh full fetch.

        Args:
            videos: Complete video list of the partition
            playlist_id: Partition key (None = all videos)

        Returns:
            The entry that was (or would have been) persisted
        """
        entry, result = await self.write_result(videos, playlist_id)
        discard(result, f"write of {cache_key(playlist_id)}")
        if result.ok:
            logger.info(f"Cached {len(videos)} videos under {cache_key(playlist_id)}")
        return entry

    async def clear(self, playlist_id: str | None = None) -> None:
        """Explicitly delete a partition snapshot."""
        discard(await remove_entry(self.store, cache_key(playlist_id)), "clear")
        logger.info(f"Cleared {cache_key(playlist_id)}")
