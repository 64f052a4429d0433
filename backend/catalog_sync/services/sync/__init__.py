"""
Synchronization layer between the remote catalog and the local cache.

This package contains:
- orchestrator: full re-fetch (single-flight per partition), detail fetches
- session: per-partition load state machine with background refresh
- fallback_pager: live pagination used when the cached path fails
- transcript_sync: incremental transcript loading and search

Example:
    from catalog_sync.services.sync import VideoSyncOrchestrator

    orchestrator = VideoSyncOrchestrator(client, VideoCollectionCache(store))
    session = orchestrator.session()
    videos = await session.load()
"""

from .fallback_pager import FallbackPager
from .orchestrator import VideoSyncOrchestrator
from .session import CollectionSession, SyncState, VideosCallback
from .transcript_sync import TranscriptLoadResult, TranscriptSync, VideoTranscript

__all__ = [
    "VideoSyncOrchestrator",
    "CollectionSession",
    "SyncState",
    "VideosCallback",
    "FallbackPager",
    "TranscriptSync",
    "TranscriptLoadResult",
    "VideoTranscript",
]
