"""
Transcript delta cache.

Per-video transcript entries kept in a single envelope. Entries are only
ever added (ready transcripts are immutable) and removed either by an
explicit clear or by pruning ids that left the video collection.

Delta fetch:
    prune(valid_ids)                      # drop videos that no longer exist
    worklist = compute_worklist(ids, cached_ids)   # exactly A \\ B
    ... fetch worklist ...
    merge(new_entries)                    # additive union
"""

import logging
from collections.abc import Iterable, Mapping

from catalog_sync.models.cache import (
    CachedTranscript,
    StoreResult,
    TranscriptCacheEntry,
    utc_now,
)
from catalog_sync.services.storage import KeyValueStore

from .base import discard, load_entry, remove_entry, save_entry

logger = logging.getLogger(__name__)

TRANSCRIPT_CACHE_KEY = "tella-transcripts-cache"


def compute_worklist(all_ids: Iterable[str], cached_ids: Iterable[str]) -> list[str]:
    """
    Ids that still need fetching: every id of `all_ids` not in `cached_ids`.

    Order follows `all_ids` (first occurrence); the resulting set does not
    depend on iteration order of either input.
    """
    cached = set(cached_ids)
    seen: set[str] = set()
    worklist: list[str] = []
    for video_id in all_ids:
        if video_id in cached or video_id in seen:
            continue
        seen.add(video_id)
        worklist.append(video_id)
    return worklist


class TranscriptDeltaCache:
    """
    Incremental transcript cache keyed by video id.

    Example:
        cache = TranscriptDeltaCache(store)
        await cache.prune({"v1", "v3", "v4"})
        entry = await cache.read()
        await cache.merge({"v4": CachedTranscript(...)})
    """

    def __init__(self, store: KeyValueStore):
        """
        Initialize transcript cache.

        Args:
            store: Persistent key-value store
        """
        self.store = store

    async def read_result(self) -> StoreResult[TranscriptCacheEntry]:
        return await load_entry(self.store, TRANSCRIPT_CACHE_KEY, TranscriptCacheEntry)

    async def read(self) -> TranscriptCacheEntry | None:
        """Read the cache; None on miss or any read error."""
        result = await self.read_result()
        discard(result, "transcript read")
        return result.value

    async def cached_ids(self) -> set[str]:
        """Ids of all cached transcripts."""
        entry = await self.read()
        return set(entry.transcripts) if entry else set()

    async def merge(self, new_entries: Mapping[str, CachedTranscript]) -> None:
        """
        Add entries to the cache (new entries win on key collision).

        Never removes existing keys; refreshes the collection-level
        fetched_at.

        Args:
            new_entries: video id -> ready transcript
        """
        existing = await self.read()
        transcripts = dict(existing.transcripts) if existing else {}
        transcripts.update(new_entries)

        entry = TranscriptCacheEntry(transcripts=transcripts, fetched_at=utc_now())
        result = await save_entry(self.store, TRANSCRIPT_CACHE_KEY, entry)
        discard(result, "transcript merge")
        if result.ok:
            logger.info(
                f"Merged {len(new_entries)} transcripts "
                f"({len(transcripts)} cached in total)"
            )

    async def prune(self, valid_ids: Iterable[str]) -> set[str]:
        """
        Remove every cached transcript whose video is not in `valid_ids`.

        Runs before a delta is computed, so a deleted and recreated id is
        fetched again instead of reusing another video's transcript.

        Args:
            valid_ids: Ids of the current video collection

        Returns:
            Ids that were removed
        """
        existing = await self.read()
        if existing is None:
            return set()

        valid = set(valid_ids)
        removed = {vid for vid in existing.transcripts if vid not in valid}
        if not removed:
            return removed

        kept = {
            vid: transcript
            for vid, transcript in existing.transcripts.items()
            if vid in valid
        }
        # Pruning is not an addition: keep the original fetched_at
        entry = TranscriptCacheEntry(transcripts=kept, fetched_at=existing.fetched_at)
        discard(await save_entry(self.store, TRANSCRIPT_CACHE_KEY, entry), "transcript prune")
        logger.info(f"Pruned {len(removed)} transcripts of deleted videos")
        return removed

    async def clear(self) -> None:
        """Delete all cached transcripts."""
        discard(await remove_entry(self.store, TRANSCRIPT_CACHE_KEY), "transcript clear")
        logger.info("Cleared transcript cache")
