"""
Video collection API routes.

Provides endpoints for:
- GET /api/videos - Cache-first collection load (background sync when stale)
- POST /api/videos/refresh - Manual full refresh
- GET /api/videos/more - Next page in fallback pagination mode
- POST /api/videos/details - Bounded details fetch for visible videos
"""

import logging

from fastapi import APIRouter, HTTPException, Query

from catalog_sync.models.schemas import (
    VideoDetailsRequest,
    VideoRecord,
    VideosResponse,
)
from catalog_sync.services.catalog_client import (
    CatalogClientError,
    CatalogConfigError,
)
from catalog_sync.services.catalog_services import get_services
from catalog_sync.services.sync import CollectionSession
from catalog_sync.utils.video_query import SortOption, filter_videos, sort_videos

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/videos", tags=["videos"])


def raise_for_client_error(error: CatalogClientError) -> None:
    """Translate a catalog client error into an HTTP error."""
    if isinstance(error, CatalogConfigError):
        raise HTTPException(status_code=401, detail=str(error)) from error
    raise HTTPException(status_code=502, detail=str(error)) from error


async def build_response(
    session: CollectionSession,
    videos: list[VideoRecord],
    q: str | None = None,
    sort: SortOption = SortOption.DATE_DESC,
) -> VideosResponse:
    """Apply query options to the session's videos and describe its state."""
    visible = sort_videos(filter_videos(videos, q), sort)

    total_duration = None
    duration_cache = get_services().duration_cache
    if duration_cache is not None:
        total_duration = await duration_cache.total_seconds([video.id for video in visible])

    return VideosResponse(
        videos=[video.to_wire() for video in visible],
        playlist_id=session.playlist_id,
        state=session.state.value,
        source=session.source,
        freshness=session.freshness.value if session.freshness else None,
        last_synced=session.last_synced,
        is_syncing=session.is_syncing,
        has_more=session.has_more,
        error=session.last_error,
        total_duration_seconds=total_duration,
    )


@router.get("", response_model=VideosResponse)
async def list_videos(
    playlist_id: str | None = None,
    q: str | None = Query(default=None, description="Filter by name or description"),
    sort: SortOption = SortOption.DATE_DESC,
) -> VideosResponse:
    """
    Load the video collection (or one playlist), cache first.

    Cached data is returned immediately; a stale entry triggers a
    background full refresh that updates the cache for the next request.

    Args:
        playlist_id: Partition (all videos if omitted)
        q: Case-insensitive filter
        sort: Sort option

    Returns:
        Videos plus load state
    """
    session = get_services().orchestrator.shared_session(playlist_id)
    try:
        videos = await session.load()
    except CatalogClientError as e:
        raise_for_client_error(e)

    return await build_response(session, videos, q, sort)


@router.post("/refresh", response_model=VideosResponse)
async def refresh_videos(
    playlist_id: str | None = None,
    reset: bool = Query(default=False, description="Leave fallback mode and retry the cache"),
) -> VideosResponse:
    """
    Manual refresh of a partition.

    Performs a full re-fetch regardless of freshness. In fallback mode
    restarts pagination, unless `reset` asks for the cached path again.
    """
    session = get_services().orchestrator.shared_session(playlist_id)
    try:
        if reset:
            videos = await session.reset()
        else:
            videos = await session.refresh()
    except CatalogClientError as e:
        logger.error(f"Manual refresh failed ({playlist_id or 'all'}): {e}")
        raise_for_client_error(e)

    return await build_response(session, videos)


@router.get("/more", response_model=VideosResponse)
async def load_more_videos(playlist_id: str | None = None) -> VideosResponse:
    """Load the next page while in fallback pagination mode."""
    session = get_services().orchestrator.shared_session(playlist_id)
    if not session.is_fallback:
        raise HTTPException(
            status_code=409,
            detail="Collection is not in pagination mode",
        )

    try:
        videos = await session.load_more()
    except CatalogClientError as e:
        raise_for_client_error(e)

    return await build_response(session, videos)


@router.post("/details")
async def video_details(request: VideoDetailsRequest) -> dict:
    """
    Fetch full details for visible videos.

    Only the first `details_batch_limit` ids are fetched; failed items are
    omitted from the result.

    Returns:
        Dict with videos (id -> record) and the ids that were skipped
    """
    services = get_services()
    limit = services.settings.details_batch_limit
    requested = list(dict.fromkeys(request.ids))
    ids, skipped = requested[:limit], requested[limit:]

    details = await services.orchestrator.fetch_video_details(ids)
    logger.info(f"Fetched details for {len(details)}/{len(ids)} videos")

    return {
        "videos": {vid: video.to_wire() for vid, video in details.items()},
        "missing": [vid for vid in ids if vid not in details],
        "skipped": skipped,
    }
