"""
Cache API routes.

Provides endpoints for:
- DELETE /api/cache/videos - Drop a cached video collection partition
- DELETE /api/cache/transcripts - Drop the transcript cache
"""

import logging

from fastapi import APIRouter

from catalog_sync.models.schemas import CacheClearResponse
from catalog_sync.services.catalog_services import get_services

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/cache", tags=["cache"])


@router.delete("/videos", response_model=CacheClearResponse)
async def clear_video_cache(playlist_id: str | None = None) -> CacheClearResponse:
    """
    Remove the cached snapshot of a partition.

    The partition's shared session is dropped too, so the next load
    starts from a cache miss.
    """
    services = get_services()
    await services.video_cache.clear(playlist_id)
    services.orchestrator.drop_session(playlist_id)
    logger.info(f"Cleared video cache ({playlist_id or 'all'})")
    return CacheClearResponse(cleared="videos", partition=playlist_id)


@router.delete("/transcripts", response_model=CacheClearResponse)
async def clear_transcript_cache() -> CacheClearResponse:
    """Remove all cached transcripts."""
    await get_services().transcript_cache.clear()
    logger.info("Cleared transcript cache")
    return CacheClearResponse(cleared="transcripts")
