"""
Duration cache - lightweight cache for video durations only.

Keeps video id -> duration seconds so collection totals can be shown
without fetching full details for every video.
"""

import logging
from collections.abc import Mapping

from catalog_sync.models.cache import DurationCacheEntry, utc_now
from catalog_sync.services.storage import KeyValueStore

from .base import discard, load_entry, save_entry

logger = logging.getLogger(__name__)

DURATION_CACHE_KEY = "tella-durations-cache"


class DurationCache:
    """Best-effort cache of video durations (full overwrite on write)."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def read(self) -> DurationCacheEntry | None:
        result = await load_entry(self.store, DURATION_CACHE_KEY, DurationCacheEntry)
        discard(result, "duration read")
        return result.value

    async def write(self, durations: Mapping[str, float]) -> None:
        entry = DurationCacheEntry(durations=dict(durations), fetched_at=utc_now())
        discard(await save_entry(self.store, DURATION_CACHE_KEY, entry), "duration write")

    async def total_seconds(self, video_ids: list[str]) -> float:
        """Sum of known durations for the given videos (unknown count as 0)."""
        entry = await self.read()
        if entry is None:
            return 0.0
        return sum(entry.durations.get(vid, 0.0) for vid in video_ids)
