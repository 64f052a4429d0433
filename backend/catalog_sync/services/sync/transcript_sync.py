"""
Transcript delta synchronization.

Loads transcripts for the whole video collection while fetching only
what the cache lacks:

1. Get the full video list (cached "all" partition, else a full re-fetch)
2. Prune cached transcripts of videos that no longer exist
3. Worklist = video ids - cached ids
4. Fetch the worklist in batches of `fetch_concurrency`
5. Merge ready transcripts into the cache (others are retried next time)
"""

import logging
from dataclasses import dataclass, field

from catalog_sync.models.cache import CachedTranscript
from catalog_sync.models.schemas import (
    TranscriptMatch,
    TranscriptRecord,
    TranscriptStatus,
    VideoRecord,
)
from catalog_sync.services.cache import TranscriptDeltaCache, compute_worklist
from catalog_sync.utils.batching import BatchProgressCallback, gather_in_batches
from catalog_sync.utils.text_utils import highlight_excerpt

from .orchestrator import VideoSyncOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class VideoTranscript:
    """A video paired with its transcript (None if unavailable)."""

    video: VideoRecord
    transcript: TranscriptRecord | None = None

    @property
    def is_ready(self) -> bool:
        return self.transcript is not None and self.transcript.is_ready


@dataclass
class TranscriptLoadResult:
    """
    Outcome of a transcript load.

    Attributes:
        items: Every video of the collection with its transcript
        cached_count: Transcripts served from cache
        new_count: Videos that had to be fetched
        failed_count: Fetches that failed (retried on the next load)
    """

    items: list[VideoTranscript] = field(default_factory=list)
    cached_count: int = 0
    new_count: int = 0
    failed_count: int = 0

    @property
    def ready_items(self) -> list[VideoTranscript]:
        return [item for item in self.items if item.is_ready]


class TranscriptSync:
    """
    Incremental transcript loader on top of the transcript delta cache.

    Example:
        sync = TranscriptSync(orchestrator, TranscriptDeltaCache(store))
        result = await sync.load()
        matches = sync.search(result, "onboarding")
    """

    def __init__(
        self,
        orchestrator: VideoSyncOrchestrator,
        transcript_cache: TranscriptDeltaCache,
        concurrency: int | None = None,
    ):
        """
        Initialize transcript sync.

        Args:
            orchestrator: Video sync orchestrator (client, video cache)
            transcript_cache: Transcript delta cache
            concurrency: Batch size (defaults to settings.fetch_concurrency)
        """
        self.orchestrator = orchestrator
        self.cache = transcript_cache
        self.concurrency = concurrency or orchestrator.settings.fetch_concurrency

    async def collection_videos(self) -> list[VideoRecord]:
        """Full video list: cached "all" snapshot if non-empty, else a re-fetch."""
        entry = await self.orchestrator.video_cache.read(None)
        if entry is not None and entry.videos:
            logger.debug(f"Found {len(entry.videos)} videos in cache")
            return entry.videos

        logger.info("No cached video list, fetching all videos")
        entry = await self.orchestrator.refresh(None)
        return entry.videos

    async def load(
        self,
        force_refresh: bool = False,
        on_progress: BatchProgressCallback | None = None,
    ) -> TranscriptLoadResult:
        """
        Load transcripts for all videos, fetching only missing ones.

        Args:
            force_refresh: Clear the transcript cache first
            on_progress: Optional async callback (done, total) per batch

        Returns:
            TranscriptLoadResult

        Raises:
            CatalogClientError: If the video list itself cannot be fetched
        """
        videos = await self.collection_videos()
        if not videos:
            return TranscriptLoadResult()

        if force_refresh:
            await self.cache.clear()

        video_ids = [video.id for video in videos]
        await self.cache.prune(video_ids)

        entry = await self.cache.read()
        cached = dict(entry.transcripts) if entry else {}
        worklist = compute_worklist(video_ids, cached.keys())

        transcripts: dict[str, TranscriptRecord | None] = {
            vid: cached_item.to_record()
            for vid, cached_item in cached.items()
            if cached_item.status == TranscriptStatus.READY
        }
        result = TranscriptLoadResult(cached_count=len(cached), new_count=len(worklist))

        if worklist:
            logger.info(
                f"Fetching {len(worklist)} new transcripts "
                f"({len(cached)} cached, batches of {self.concurrency})"
            )
            outcome = await gather_in_batches(
                worklist, self._fetch_transcript, self.concurrency, on_progress
            )
            result.failed_count = len(outcome.failures)
            transcripts.update(outcome.results)

            names = {video.id: video.name for video in videos}
            new_entries = {
                vid: CachedTranscript.from_record(transcript, names[vid])
                for vid, transcript in outcome.results.items()
                if transcript is not None and transcript.is_ready
            }
            if new_entries:
                await self.cache.merge(new_entries)
        else:
            logger.info("All transcripts cached")

        result.items = [
            VideoTranscript(video=video, transcript=transcripts.get(video.id))
            for video in videos
        ]
        return result

    async def _fetch_transcript(self, video_id: str) -> TranscriptRecord | None:
        video = await self.orchestrator.client.get_video(video_id)
        return video.transcript

    @staticmethod
    def search(result: TranscriptLoadResult, query: str | None = None) -> list[TranscriptMatch]:
        """
        Ready transcripts containing `query` (all ready ones without a query).

        Args:
            result: Loaded transcripts
            query: Case-insensitive substring

        Returns:
            Matches with highlighted excerpts, in collection order
        """
        needle = (query or "").strip().lower()
        matches: list[TranscriptMatch] = []

        for item in result.ready_items:
            text = item.transcript.text
            if needle and needle not in text.lower():
                continue
            matches.append(
                TranscriptMatch(
                    video_id=item.video.id,
                    video_name=item.video.name,
                    excerpt=highlight_excerpt(text, query.strip() if needle else None),
                    language=item.transcript.language,
                    sentence_count=len(item.transcript.sentences),
                )
            )

        return matches
