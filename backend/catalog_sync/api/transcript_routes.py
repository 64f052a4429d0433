"""
Transcript API routes.

Provides endpoints for:
- GET /api/transcripts - Delta transcript sync followed by a search
- GET /api/transcripts/stream - Same, with SSE progress per fetched batch
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from catalog_sync.api.routes import raise_for_client_error
from catalog_sync.models.schemas import TranscriptSearchResponse
from catalog_sync.services.catalog_client import CatalogClientError
from catalog_sync.services.catalog_services import get_services
from catalog_sync.services.sync import TranscriptLoadResult, TranscriptSync

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/transcripts", tags=["transcripts"])


def build_search_response(
    result: TranscriptLoadResult, q: str | None
) -> TranscriptSearchResponse:
    """Search loaded transcripts and summarize the load."""
    return TranscriptSearchResponse(
        query=q or "",
        matches=TranscriptSync.search(result, q),
        total_videos=len(result.items),
        cached_count=result.cached_count,
        new_count=result.new_count,
        failed_count=result.failed_count,
    )


@router.get("", response_model=TranscriptSearchResponse)
async def search_transcripts(
    q: str | None = Query(default=None, description="Case-insensitive text to find"),
    force_refresh: bool = False,
) -> TranscriptSearchResponse:
    """
    Load transcripts (fetching only uncached ones) and search them.

    Args:
        q: Search text (all ready transcripts if omitted)
        force_refresh: Drop the transcript cache before loading

    Returns:
        Matches with highlighted excerpts and load counters
    """
    try:
        result = await get_services().transcript_sync.load(force_refresh=force_refresh)
    except CatalogClientError as e:
        logger.error(f"Transcript load failed: {e}")
        raise_for_client_error(e)

    return build_search_response(result, q)


async def stream_transcript_load(
    transcript_sync: TranscriptSync,
    q: str | None,
    force_refresh: bool,
) -> AsyncGenerator[str, None]:
    """
    Run a transcript load, yielding SSE progress events.

    Events:
        {"type": "progress", "done": int, "total": int}
        {"type": "result", "data": TranscriptSearchResponse}
        {"type": "error", "error": str}
    """
    progress_queue: asyncio.Queue = asyncio.Queue()
    result_holder: list[TranscriptLoadResult] = []
    error_holder: list[Exception] = []

    async def progress_callback(done: int, total: int) -> None:
        await progress_queue.put({"type": "progress", "done": done, "total": total})

    async def run_load() -> None:
        try:
            result = await transcript_sync.load(
                force_refresh=force_refresh, on_progress=progress_callback
            )
            result_holder.append(result)
        except Exception as e:
            logger.exception("Transcript load error")
            error_holder.append(e)
        finally:
            await progress_queue.put({"type": "done"})

    load_task = asyncio.create_task(run_load())

    try:
        while True:
            event = await progress_queue.get()
            if event["type"] == "done":
                break
            yield f"data: {json.dumps(event)}\n\n"
    finally:
        if not load_task.done():
            load_task.cancel()
            try:
                await load_task
            except asyncio.CancelledError:
                pass

    if error_holder:
        yield f"data: {json.dumps({'type': 'error', 'error': str(error_holder[0])})}\n\n"
    elif result_holder:
        data = build_search_response(result_holder[0], q).model_dump(mode="json")
        yield f"data: {json.dumps({'type': 'result', 'data': data})}\n\n"
    else:
        yield f"data: {json.dumps({'type': 'error', 'error': 'No result'})}\n\n"


def create_sse_response(generator: AsyncGenerator[str, None]) -> StreamingResponse:
    """Create SSE StreamingResponse with proper headers."""
    return StreamingResponse(
        generator,
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )


@router.get("/stream")
async def stream_transcripts(
    q: str | None = None,
    force_refresh: bool = False,
) -> StreamingResponse:
    """Transcript load and search with SSE progress ("Loading x/y")."""
    transcript_sync = get_services().transcript_sync
    return create_sse_response(stream_transcript_load(transcript_sync, q, force_refresh))
