"""
Per-collection load session.

Tracks one consumer's view of a partition through the load state machine:

    EMPTY -> LOADING -> READY_FROM_CACHE -> SYNCING -> READY_FROM_FETCH
                     -> READY_FROM_FETCH
                     -> FALLBACK (live pagination)

A failed background sync returns SYNCING to READY_FROM_CACHE silently:
the cached snapshot stays authoritative until a refresh succeeds.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from catalog_sync.logging_config import DISCARDED_LOGGER
from catalog_sync.models.schemas import VideoRecord
from catalog_sync.services.cache.freshness import (
    Freshness,
    classify,
    needs_background_refresh,
)
from catalog_sync.services.catalog_client import CatalogConfigError

from .fallback_pager import FallbackPager

if TYPE_CHECKING:
    from .orchestrator import VideoSyncOrchestrator

logger = logging.getLogger(__name__)
discarded_logger = logging.getLogger(DISCARDED_LOGGER)

# Signature: (videos) -> None, called whenever the visible list changes
VideosCallback = Callable[[list[VideoRecord]], Awaitable[None]]


class SyncState(str, Enum):
    """Load state of a collection session."""

    EMPTY = "empty"
    LOADING = "loading"
    READY_FROM_CACHE = "ready_from_cache"
    SYNCING = "syncing"
    READY_FROM_FETCH = "ready_from_fetch"
    FALLBACK = "fallback"


class CollectionSession:
    """
    Cache-first loader for one partition of the video collection.

    Example:
        session = orchestrator.session(playlist_id="pl_1", on_update=render)
        videos = await session.load()     # returns cached data immediately
        if session.background_task:
            await session.background_task  # optional: wait for the sync
        await session.refresh()           # explicit user refresh
    """

    def __init__(
        self,
        orchestrator: "VideoSyncOrchestrator",
        playlist_id: str | None = None,
        on_update: VideosCallback | None = None,
    ):
        """
        Initialize session.

        Args:
            orchestrator: Shared orchestrator (cache, client, settings)
            playlist_id: Partition key (None = all videos)
            on_update: Optional async callback receiving new video lists
        """
        self.orchestrator = orchestrator
        self.playlist_id = playlist_id
        self.on_update = on_update

        self.state = SyncState.EMPTY
        self.videos: list[VideoRecord] = []
        self.last_synced: datetime | None = None
        self.freshness: Freshness | None = None
        self.background_task: asyncio.Task | None = None
        self.pager: FallbackPager | None = None
        self.last_error: str | None = None
        self._closed = False

    @property
    def is_syncing(self) -> bool:
        return self.state == SyncState.SYNCING

    @property
    def is_fallback(self) -> bool:
        return self.state == SyncState.FALLBACK

    @property
    def has_more(self) -> bool:
        """True when fallback pagination can load another page."""
        return self.pager is not None and self.is_fallback and self.pager.has_more

    @property
    def source(self) -> str:
        """Where the visible list came from: none, cache, fetch or pagination."""
        if self.state == SyncState.FALLBACK:
            return "pagination"
        if self.state in (SyncState.READY_FROM_CACHE, SyncState.SYNCING):
            return "cache"
        if self.state == SyncState.READY_FROM_FETCH:
            return "fetch"
        return "none"

    # ═══════════════════════════════════════════════════════════════════════
    # Loading
    # ═══════════════════════════════════════════════════════════════════════

    async def load(self) -> list[VideoRecord]:
        """
        Load the collection, cache first.

        Cache hit: returns cached videos immediately and, when the entry is
        stale or expired, starts a background full refresh.
        Cache miss: fetches synchronously; on failure switches to fallback
        pagination and returns whatever the first page yielded.

        Returns:
            Videos currently visible to the consumer

        Raises:
            CatalogConfigError: Missing credentials (terminal for the load)
        """
        if self.is_fallback:
            return self.videos

        self.state = SyncState.LOADING
        entry = await self.orchestrator.video_cache.read(self.playlist_id)

        if entry is not None:
            await self._publish(entry.videos, entry.fetched_at, SyncState.READY_FROM_CACHE)
            self.freshness = classify(
                entry.fetched_at, self.orchestrator.cache_duration_minutes()
            )
            logger.info(
                f"Loaded {len(entry.videos)} cached videos "
                f"({self._label}, {self.freshness.value})"
            )
            if needs_background_refresh(self.freshness):
                self._start_background_refresh()
            return self.videos

        try:
            entry = await self.orchestrator.refresh(self.playlist_id)
        except CatalogConfigError:
            self.state = SyncState.EMPTY
            raise
        except Exception as e:
            await self._enter_fallback(e)
            return self.videos

        self.freshness = Freshness.FRESH
        await self._publish(entry.videos, entry.fetched_at, SyncState.READY_FROM_FETCH)
        return self.videos

    async def refresh(self) -> list[VideoRecord]:
        """
        Explicit user refresh.

        Always performs a full re-fetch regardless of freshness. In
        fallback mode restarts pagination from the first page instead.

        Raises:
            CatalogClientError: If the foreground fetch fails
        """
        if self.is_fallback and self.pager is not None:
            logger.info(f"Restarting fallback pagination ({self._label})")
            videos = await self.pager.restart()
            self.last_error = None
            await self._publish(videos, None, SyncState.FALLBACK)
            return self.videos

        previous = self.state
        self.state = SyncState.LOADING
        try:
            entry = await self.orchestrator.refresh(self.playlist_id)
        except Exception:
            # A joined background sync failed with this fetch: nothing is in flight now
            if previous == SyncState.SYNCING:
                self.state = SyncState.READY_FROM_CACHE
            elif previous == SyncState.LOADING:
                self.state = SyncState.EMPTY
            else:
                self.state = previous
            raise

        self.freshness = Freshness.FRESH
        self.last_error = None
        await self._publish(entry.videos, entry.fetched_at, SyncState.READY_FROM_FETCH)
        return self.videos

    async def reset(self) -> list[VideoRecord]:
        """Leave fallback mode and retry the cached path from scratch."""
        self.pager = None
        self.last_error = None
        self.state = SyncState.EMPTY
        self.videos = []
        self.last_synced = None
        self.freshness = None
        return await self.load()

    async def load_more(self) -> list[VideoRecord]:
        """Load the next page in fallback mode (no-op otherwise)."""
        if not self.has_more:
            return self.videos
        videos = await self.pager.load_more()
        await self._publish(videos, None, SyncState.FALLBACK)
        return self.videos

    def close(self) -> None:
        """Detach the consumer; an in-flight background result is ignored."""
        self._closed = True

    # ═══════════════════════════════════════════════════════════════════════
    # Internals
    # ═══════════════════════════════════════════════════════════════════════

    @property
    def _label(self) -> str:
        return self.playlist_id or "all"

    def _start_background_refresh(self) -> None:
        self.state = SyncState.SYNCING
        self.background_task = asyncio.create_task(self._background_refresh())

    async def _background_refresh(self) -> None:
        try:
            entry = await self.orchestrator.refresh(self.playlist_id)
        except Exception as e:
            discarded_logger.warning(
                f"Background sync failed, keeping cached data: {e}",
                extra={"partition": self._label},
            )
            if self.state == SyncState.SYNCING:
                self.state = SyncState.READY_FROM_CACHE
            return

        if self._closed:
            logger.debug(f"Background sync finished after close ({self._label}), ignored")
            return
        if self.state != SyncState.SYNCING:
            # A manual refresh or reset took over in the meantime
            return

        self.freshness = Freshness.FRESH
        try:
            await self._publish(entry.videos, entry.fetched_at, SyncState.READY_FROM_FETCH)
        except Exception:
            logger.exception(f"Update callback failed ({self._label})")

    async def _enter_fallback(self, error: Exception) -> None:
        logger.warning(
            f"Full fetch failed, switching to pagination: {error}",
            extra={"partition": self._label},
        )
        self.last_error = str(error)
        self.freshness = None
        self.pager = FallbackPager(
            self.orchestrator.client,
            playlist_id=self.playlist_id,
            page_size=self.orchestrator.settings.fallback_page_size,
        )
        self.state = SyncState.FALLBACK

        try:
            await self.pager.fetch_page(None)
        except Exception as e:
            logger.warning(f"First fallback page failed ({self._label}): {e}")
            self.last_error = str(e)

        await self._publish(self.pager.videos, None, SyncState.FALLBACK)

    async def _publish(
        self,
        videos: list[VideoRecord],
        fetched_at: datetime | None,
        state: SyncState,
    ) -> None:
        self.videos = list(videos)
        if fetched_at is not None:
            self.last_synced = fetched_at
        self.state = state
        if self.on_update is not None and not self._closed:
            await self.on_update(self.videos)
