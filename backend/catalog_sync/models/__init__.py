"""
Pydantic models for the video catalog cache.

Exports:
    - Catalog records (VideoRecord, TranscriptRecord, Playlist, Page)
    - Cache envelopes (VideoCacheEntry, TranscriptCacheEntry, etc.)
"""

from catalog_sync.models.cache import (
    CACHE_SCHEMA_VERSION,
    CachedTranscript,
    CacheError,
    DurationCacheEntry,
    StoreResult,
    TranscriptCacheEntry,
    VideoCacheEntry,
    utc_now,
)
from catalog_sync.models.schemas import (
    ExportJob,
    Page,
    Playlist,
    Thumbnails,
    TranscriptRecord,
    TranscriptSentence,
    TranscriptStatus,
    VideoRecord,
    VideoSettings,
)

__all__ = [
    # Catalog records
    "ExportJob",
    "Page",
    "Playlist",
    "Thumbnails",
    "TranscriptRecord",
    "TranscriptSentence",
    "TranscriptStatus",
    "VideoRecord",
    "VideoSettings",
    # Cache models
    "CACHE_SCHEMA_VERSION",
    "CachedTranscript",
    "CacheError",
    "DurationCacheEntry",
    "StoreResult",
    "TranscriptCacheEntry",
    "VideoCacheEntry",
    "utc_now",
]
