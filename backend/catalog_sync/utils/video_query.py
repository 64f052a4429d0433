"""
Filtering and sorting of video collections.
"""

from enum import Enum

from catalog_sync.models.schemas import VideoRecord


class SortOption(str, Enum):
    """Supported collection orderings."""

    DATE_DESC = "date-desc"
    DATE_ASC = "date-asc"
    VIEWS_DESC = "views-desc"
    VIEWS_ASC = "views-asc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"


def filter_videos(videos: list[VideoRecord], text: str | None) -> list[VideoRecord]:
    """Keep videos whose name or description contains `text` (case-insensitive)."""
    if not text:
        return list(videos)
    needle = text.lower()
    return [
        video
        for video in videos
        if needle in video.name.lower() or needle in video.description.lower()
    ]


def sort_videos(
    videos: list[VideoRecord], option: SortOption = SortOption.DATE_DESC
) -> list[VideoRecord]:
    """Return a sorted copy of `videos`."""
    if option == SortOption.DATE_DESC:
        return sorted(videos, key=lambda v: v.updated_at, reverse=True)
    if option == SortOption.DATE_ASC:
        return sorted(videos, key=lambda v: v.updated_at)
    if option == SortOption.VIEWS_DESC:
        return sorted(videos, key=lambda v: v.views, reverse=True)
    if option == SortOption.VIEWS_ASC:
        return sorted(videos, key=lambda v: v.views)
    if option == SortOption.NAME_ASC:
        return sorted(videos, key=lambda v: v.name.casefold())
    if option == SortOption.NAME_DESC:
        return sorted(videos, key=lambda v: v.name.casefold(), reverse=True)
    return list(videos)
