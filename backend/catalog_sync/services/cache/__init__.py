"""
Cache components for the local catalog copy.

- freshness: pure age classification (fresh / stale / expired / manual)
- video_cache: full-collection snapshots per partition
- transcript_cache: incremental per-video transcript cache
- duration_cache: lightweight video duration cache
"""

from .duration_cache import DURATION_CACHE_KEY, DurationCache
from .freshness import (
    FRESH_THRESHOLD,
    Freshness,
    cache_age,
    classify,
    is_expired,
    is_fresh,
    is_stale,
    needs_background_refresh,
)
from .transcript_cache import TRANSCRIPT_CACHE_KEY, TranscriptDeltaCache, compute_worklist
from .video_cache import CACHE_KEY_PREFIX, VideoCollectionCache, cache_key

__all__ = [
    # Freshness policy
    "FRESH_THRESHOLD",
    "Freshness",
    "cache_age",
    "classify",
    "is_expired",
    "is_fresh",
    "is_stale",
    "needs_background_refresh",
    # Caches
    "CACHE_KEY_PREFIX",
    "DURATION_CACHE_KEY",
    "TRANSCRIPT_CACHE_KEY",
    "DurationCache",
    "TranscriptDeltaCache",
    "VideoCollectionCache",
    "cache_key",
    "compute_worklist",
]
