"""Builders for catalog records used across tests."""

from datetime import datetime, timezone

from catalog_sync.models.schemas import Page, TranscriptRecord, TranscriptStatus, VideoRecord

BASE_TIME = datetime(2025, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_video(
    video_id: str,
    name: str | None = None,
    updated_at: datetime | None = None,
    views: int = 0,
    transcript: TranscriptRecord | None = None,
    duration: float | None = None,
    description: str = "",
) -> VideoRecord:
    """Build a VideoRecord with sensible defaults."""
    return VideoRecord(
        id=video_id,
        name=name or f"Video {video_id}",
        description=description,
        updated_at=updated_at or BASE_TIME,
        views=views,
        transcript=transcript,
        duration_seconds=duration,
    )


def ready_transcript(text: str) -> TranscriptRecord:
    return TranscriptRecord(status=TranscriptStatus.READY, text=text)


def paginate(videos: list[VideoRecord], cursor: str | None, limit: int) -> Page[VideoRecord]:
    """Serve `videos` in pages; cursors are stringified offsets."""
    start = int(cursor) if cursor else 0
    end = start + limit
    has_more = end < len(videos)
    return Page(
        items=videos[start:end],
        next_cursor=str(end) if has_more else None,
        has_more=has_more,
    )
