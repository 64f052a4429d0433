"""
Synchronization orchestrator for the video collection cache.

Owns the shared collaborators (remote client, caches, settings) and the
full re-fetch: every page of a partition is fetched strictly in order
using the server's cursors, then the snapshot replaces the cache entry.

At most one full re-fetch per partition is in flight: concurrent callers
(background syncs, manual refreshes, transcript loads) join the running
fetch and receive its result.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable

from catalog_sync.config import Settings, get_settings, read_cache_duration
from catalog_sync.models.cache import VideoCacheEntry
from catalog_sync.models.schemas import VideoRecord
from catalog_sync.services.cache import DurationCache, VideoCollectionCache, cache_key
from catalog_sync.services.catalog_client import CatalogClient
from catalog_sync.utils.batching import gather_in_batches

from .session import CollectionSession, VideosCallback

logger = logging.getLogger(__name__)


class VideoSyncOrchestrator:
    """
    Coordinates cache reads, full refreshes and load sessions.

    Example:
        orchestrator = VideoSyncOrchestrator(client, VideoCollectionCache(store))
        session = orchestrator.session(playlist_id=None)
        videos = await session.load()

        entry = await orchestrator.refresh("pl_1")   # full re-fetch + cache write
    """

    def __init__(
        self,
        client: CatalogClient,
        video_cache: VideoCollectionCache,
        settings: Settings | None = None,
        duration_cache: DurationCache | None = None,
        duration_source: Callable[[], int] | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            client: Remote catalog client
            video_cache: Video collection cache
            settings: Application settings (uses defaults if None)
            duration_cache: Optional duration cache fed by detail fetches
            duration_source: Returns the cache duration in minutes (defaults to
                re-reading CACHE_DURATION, with settings as fallback)
        """
        self.client = client
        self.video_cache = video_cache
        self.settings = settings or get_settings()
        self.duration_cache = duration_cache
        self.duration_source = duration_source or self._read_duration
        self._inflight: dict[str, asyncio.Task[VideoCacheEntry]] = {}
        self._sessions: dict[str, CollectionSession] = {}

    def cache_duration_minutes(self) -> int:
        """Configured cache duration, read from its source on every freshness check."""
        return self.duration_source()

    def _read_duration(self) -> int:
        return read_cache_duration(fallback=self.settings.cache_duration)

    # ═══════════════════════════════════════════════════════════════════════
    # Full re-fetch
    # ═══════════════════════════════════════════════════════════════════════

    async def fetch_all(self, playlist_id: str | None = None) -> list[VideoRecord]:
        """
        Fetch every page of a partition, sequentially.

        Args:
            playlist_id: Partition key (None = all videos)

        Returns:
            All videos in server order

        Raises:
            CatalogClientError: If any page fails
        """
        videos: list[VideoRecord] = []
        cursor: str | None = None
        has_more = True
        pages = 0

        while has_more:
            page = await self.client.list_videos(
                cursor=cursor,
                limit=self.settings.page_size,
                playlist_id=playlist_id,
            )
            videos.extend(page.items)
            pages += 1
            cursor = page.next_cursor
            has_more = page.has_more

            if has_more and not cursor:
                logger.warning(
                    f"Server reported more pages without a cursor after page {pages}, "
                    f"stopping"
                )
                break

        logger.info(f"Fetched {len(videos)} videos in {pages} pages ({playlist_id or 'all'})")
        return videos

    async def refresh(self, playlist_id: str | None = None) -> VideoCacheEntry:
        """
        Full re-fetch of a partition and cache overwrite (single-flight).

        Args:
            playlist_id: Partition key (None = all videos)

        Returns:
            The new snapshot (fetched_at = write time)

        Raises:
            CatalogClientError: If the fetch fails (cache left untouched)
        """
        key = cache_key(playlist_id)
        task = self._inflight.get(key)

        if task is None:
            task = asyncio.create_task(self._refresh(playlist_id))
            self._inflight[key] = task
            task.add_done_callback(lambda done, key=key: self._forget(key, done))
        else:
            logger.debug(f"Joining in-flight refresh of {key}")

        return await asyncio.shield(task)

    async def _refresh(self, playlist_id: str | None) -> VideoCacheEntry:
        videos = await self.fetch_all(playlist_id)
        return await self.video_cache.write(videos, playlist_id)

    def _forget(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the outcome as retrieved even if every waiter went away
        if not task.cancelled():
            task.exception()

    def is_refreshing(self, playlist_id: str | None = None) -> bool:
        """True while a full re-fetch of the partition is in flight."""
        return cache_key(playlist_id) in self._inflight

    # ═══════════════════════════════════════════════════════════════════════
    # Details
    # ═══════════════════════════════════════════════════════════════════════

    async def fetch_video_details(
        self,
        video_ids: Iterable[str],
        concurrency: int | None = None,
    ) -> dict[str, VideoRecord]:
        """
        Fetch full details for a set of videos in bounded batches.

        Failed items are omitted. Known durations are recorded in the
        duration cache.

        Args:
            video_ids: Videos to fetch (duplicates ignored)
            concurrency: Batch size (defaults to settings.fetch_concurrency)

        Returns:
            video id -> full VideoRecord
        """
        ids = list(dict.fromkeys(video_ids))
        outcome = await gather_in_batches(
            ids,
            self.client.get_video,
            concurrency or self.settings.fetch_concurrency,
        )

        if self.duration_cache is not None:
            durations = {
                vid: video.duration_seconds
                for vid, video in outcome.results.items()
                if video.duration_seconds is not None
            }
            if durations:
                existing = await self.duration_cache.read()
                merged = dict(existing.durations) if existing else {}
                merged.update(durations)
                await self.duration_cache.write(merged)

        return outcome.results

    # ═══════════════════════════════════════════════════════════════════════
    # Sessions
    # ═══════════════════════════════════════════════════════════════════════

    def session(
        self,
        playlist_id: str | None = None,
        on_update: VideosCallback | None = None,
    ) -> CollectionSession:
        """Create a new load session for a partition."""
        return CollectionSession(self, playlist_id=playlist_id, on_update=on_update)

    def shared_session(self, playlist_id: str | None = None) -> CollectionSession:
        """
        Long-lived session per partition.

        Keeps fallback mode and pagination state across requests until a
        manual reset.
        """
        key = cache_key(playlist_id)
        session = self._sessions.get(key)
        if session is None:
            session = self.session(playlist_id)
            self._sessions[key] = session
        return session

    def drop_session(self, playlist_id: str | None = None) -> None:
        """Close and forget the shared session of a partition."""
        session = self._sessions.pop(cache_key(playlist_id), None)
        if session is not None:
            session.close()
