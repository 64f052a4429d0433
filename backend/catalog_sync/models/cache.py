"""
Cache models for the local copy of the remote catalog.

Defines the persisted envelopes (JSON wire format) and the result type
returned by persistence operations.

Wire format (one JSON string per store key):
    tella-videos-cache-<playlistId|all>
        {"videos": [...], "fetchedAt": "...", "playlistId": null, "schemaVersion": 1}
    tella-transcripts-cache
        {"transcripts": {"<videoId>": {"status", "text", "videoName", "sentences", "language"}},
         "fetchedAt": "...", "schemaVersion": 1}
    tella-durations-cache
        {"durations": {"<videoId>": 123.0}, "fetchedAt": "..."}

Field names must stay stable across releases: entries written by an
older process are read back by a newer one.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Generic, TypeVar

from pydantic import Field

from catalog_sync.models.schemas import (
    CatalogModel,
    TranscriptRecord,
    TranscriptSentence,
    TranscriptStatus,
    VideoRecord,
)

T = TypeVar("T")

# Newest envelope layout this code can read; entries without a version are 1
CACHE_SCHEMA_VERSION = 1


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class CacheError(Exception):
    """
    Persistence failure in the local cache.

    Never surfaced to consumers: cache components return it inside a
    StoreResult and the caller decides to discard it.

    Attributes:
        message: Error description
        key: Store key involved
        operation: "get", "set", "remove" or "decode"
        original_error: Underlying exception if available
    """

    def __init__(
        self,
        message: str,
        key: str | None = None,
        operation: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.key = key
        self.operation = operation
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.operation:
            parts.append(f"operation={self.operation}")
        if self.key:
            parts.append(f"key={self.key}")
        return " | ".join(parts)


@dataclass
class StoreResult(Generic[T]):
    """
    Outcome of a persistence operation.

    Attributes:
        value: Operation result (None for writes or missing keys)
        error: CacheError if the operation failed
    """

    value: T | None = None
    error: CacheError | None = None

    @property
    def ok(self) -> bool:
        """True if the operation succeeded."""
        return self.error is None

    @classmethod
    def success(cls, value: T | None = None) -> "StoreResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: CacheError) -> "StoreResult[T]":
        return cls(error=error)


class VideoCacheEntry(CatalogModel):
    """
    Full snapshot of one video collection partition.

    Attributes:
        videos: All videos of the partition, in server order
        fetched_at: When the snapshot was fetched (set only by full fetches)
        playlist_id: Partition key (None = all videos)
        schema_version: Envelope layout version
    """

    videos: list[VideoRecord] = Field(default_factory=list)
    fetched_at: datetime
    playlist_id: str | None = None
    schema_version: int = 1

    def to_wire(self) -> dict:
        # playlistId is always written, even for the "all" partition
        data = super().to_wire()
        data["playlistId"] = self.playlist_id
        return data


class CachedTranscript(CatalogModel):
    """
    Ready transcript stored in the transcript cache.

    Attributes:
        status: Always "ready" for entries written by this code
        text: Full transcript text
        video_name: Name of the owning video at fetch time
        sentences: Timed sentences (optional in older entries)
        language: Transcript language as reported by the API (absent in older entries)
    """

    status: TranscriptStatus
    text: str = ""
    video_name: str = ""
    sentences: list[TranscriptSentence] | None = None
    language: str | None = None

    @classmethod
    def from_record(
        cls, transcript: TranscriptRecord, video_name: str
    ) -> "CachedTranscript":
        """Build a cache entry from a transcript fetched from the API."""
        return cls(
            status=transcript.status,
            text=transcript.text,
            video_name=video_name,
            sentences=list(transcript.sentences),
            language=transcript.language,
        )

    def to_record(self) -> TranscriptRecord:
        """Convert back to a transcript record (language None if never recorded)."""
        return TranscriptRecord(
            status=self.status,
            text=self.text,
            language=self.language,
            sentences=list(self.sentences or []),
        )


class TranscriptCacheEntry(CatalogModel):
    """
    Incremental per-video transcript cache.

    `fetched_at` is the last time any entry was added, not a per-item
    freshness signal.
    """

    transcripts: dict[str, CachedTranscript] = Field(default_factory=dict)
    fetched_at: datetime
    schema_version: int = 1


class DurationCacheEntry(CatalogModel):
    """Lightweight cache of video durations (video id -> seconds)."""

    durations: dict[str, float] = Field(default_factory=dict)
    fetched_at: datetime
