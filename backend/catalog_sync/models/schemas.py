"""
Pydantic models for the video catalog and its HTTP API.

Remote records keep the camelCase field names used by the catalog API
(populated and dumped through aliases), so a record fetched from the
server and a record read back from the local cache serialize identically.
"""

from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CatalogModel(BaseModel):
    """Base model for records exchanged with the catalog API."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_wire(self) -> dict:
        """Dump using API field names (JSON-safe)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TranscriptStatus(str, Enum):
    """Processing status of a video transcript."""

    READY = "ready"
    PROCESSING = "processing"
    FAILED = "failed"


class TranscriptSentence(CatalogModel):
    """Single timed sentence of a transcript."""

    text: str
    start_seconds: float
    end_seconds: float


class TranscriptRecord(CatalogModel):
    """Transcript attached to a video. Only READY transcripts are cached."""

    status: TranscriptStatus
    text: str = ""
    language: str | None = None
    sentences: list[TranscriptSentence] = Field(default_factory=list)

    @property
    def is_ready(self) -> bool:
        """True when the transcript is complete and searchable."""
        return self.status == TranscriptStatus.READY


class Thumbnails(CatalogModel):
    """Multi-resolution thumbnail URLs."""

    small: str | None = None
    medium: str | None = None
    large: str | None = None


class VideoSettings(CatalogModel):
    """Per-video playback settings (subset; unknown keys are preserved)."""

    allow_download: bool | None = None
    captions_enabled: bool | None = None
    password_protected: bool | None = None


class ExportJob(CatalogModel):
    """Export job started for a video."""

    id: str | None = None
    status: str = "pending"
    resolution: str | None = None
    url: str | None = None


class VideoRecord(CatalogModel):
    """
    Video in the remote catalog.

    Identity is `id`; two records with the same id are the same video
    at different points in time (newer `updated_at` wins).
    """

    id: str
    name: str = ""
    description: str = ""
    created_at: datetime | None = None
    updated_at: datetime
    views: int = Field(default=0, ge=0)
    duration_seconds: float | None = None
    thumbnails: Thumbnails | None = None
    settings: VideoSettings | None = None
    transcript: TranscriptRecord | None = None
    exports: list[ExportJob] = Field(default_factory=list)


class Playlist(CatalogModel):
    """Playlist grouping videos; its id is a partition key of the video cache."""

    id: str
    name: str = ""
    description: str = ""
    visibility: str | None = None
    video_count: int | None = None
    updated_at: datetime | None = None


class Page(BaseModel, Generic[T]):
    """One page of a paginated list endpoint."""

    items: list[T] = Field(default_factory=list)
    next_cursor: str | None = None
    has_more: bool = False


# ═══════════════════════════════════════════════════════════════════════════
# HTTP API models
# ═══════════════════════════════════════════════════════════════════════════


class VideosResponse(BaseModel):
    """Current view of a video collection."""

    videos: list[dict]
    playlist_id: str | None = None
    state: str
    source: str
    freshness: str | None = None
    last_synced: datetime | None = None
    is_syncing: bool = False
    has_more: bool = False
    error: str | None = None
    total_duration_seconds: float | None = None


class VideoDetailsRequest(BaseModel):
    """Request for full details of a set of videos."""

    ids: list[str] = Field(..., min_length=1)


class TranscriptMatch(BaseModel):
    """Video whose ready transcript matches a search query."""

    video_id: str
    video_name: str
    excerpt: str
    language: str | None = None
    sentence_count: int = 0


class TranscriptSearchResponse(BaseModel):
    """Result of transcript delta sync plus search."""

    query: str = ""
    matches: list[TranscriptMatch]
    total_videos: int
    cached_count: int
    new_count: int
    failed_count: int = 0


class CacheClearResponse(BaseModel):
    """Result of an explicit cache clear."""

    cleared: str
    partition: str | None = None
