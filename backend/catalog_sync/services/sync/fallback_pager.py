"""
Live server-side pagination used when the cached path fails.

Fetches one page at a time on demand and keeps a running list
deduplicated by video id (a newer `updated_at` replaces the older copy).
"""

import logging

from catalog_sync.models.schemas import Page, VideoRecord
from catalog_sync.services.catalog_client import CatalogClient

logger = logging.getLogger(__name__)


class FallbackPager:
    """
    Incremental "load more" pagination over the list endpoint.

    Example:
        pager = FallbackPager(client, playlist_id="pl_1", page_size=30)
        await pager.fetch_page(None)     # first page
        await pager.load_more()          # next page, if any
        pager.videos                     # accumulated, deduplicated
    """

    def __init__(
        self,
        client: CatalogClient,
        playlist_id: str | None = None,
        page_size: int = 30,
    ):
        """
        Initialize pager.

        Args:
            client: Remote catalog client
            playlist_id: Partition to page through (None = all videos)
            page_size: Items per page
        """
        self.client = client
        self.playlist_id = playlist_id
        self.page_size = page_size
        self.videos: list[VideoRecord] = []
        self.cursor: str | None = None
        self.has_more = True
        self.pages_loaded = 0

    def reset(self) -> None:
        """Forget accumulated videos and start over from the first page."""
        self.videos = []
        self.cursor = None
        self.has_more = True
        self.pages_loaded = 0

    async def fetch_page(self, cursor: str | None) -> Page[VideoRecord]:
        """
        Fetch one page and fold it into the running list.

        A None cursor fetches the first page and replaces the list.

        Args:
            cursor: Opaque server cursor (None = first page)

        Returns:
            The fetched page
        """
        page = await self.client.list_videos(
            cursor=cursor, limit=self.page_size, playlist_id=self.playlist_id
        )

        if cursor is None:
            self.videos = []
            self.pages_loaded = 0
        self._accumulate(page.items)

        self.cursor = page.next_cursor
        self.has_more = page.has_more and page.next_cursor is not None
        self.pages_loaded += 1

        logger.debug(
            f"Fallback page {self.pages_loaded}: +{len(page.items)} "
            f"({len(self.videos)} total, has_more={self.has_more})"
        )
        return page

    async def load_more(self) -> list[VideoRecord]:
        """Fetch the next page if the server reported more."""
        if not self.has_more:
            return self.videos
        await self.fetch_page(self.cursor)
        return self.videos

    async def restart(self) -> list[VideoRecord]:
        """Reset and fetch the first page again."""
        self.reset()
        await self.fetch_page(None)
        return self.videos

    def _accumulate(self, items: list[VideoRecord]) -> None:
        index = {video.id: i for i, video in enumerate(self.videos)}
        for video in items:
            position = index.get(video.id)
            if position is None:
                index[video.id] = len(self.videos)
                self.videos.append(video)
            elif video.updated_at > self.videos[position].updated_at:
                self.videos[position] = video
