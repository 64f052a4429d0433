"""Tests for incremental transcript loading and search."""

from unittest.mock import AsyncMock

import pytest

from catalog_sync.models.cache import CachedTranscript
from catalog_sync.models.schemas import TranscriptRecord, TranscriptStatus
from catalog_sync.services.catalog_client import CatalogConnectionError
from catalog_sync.services.sync import TranscriptSync
from factories import make_video, paginate, ready_transcript

TEXTS = {
    "v1": "Welcome to the onboarding session.",
    "v2": "This product tour covers the dashboard.",
    "v3": "Our API uses cursor pagination.",
    "v4": "Release notes for the onboarding flow.",
}


@pytest.fixture
def transcript_videos():
    videos = [make_video(vid, transcript=ready_transcript(text)) for vid, text in TEXTS.items()]
    videos.append(
        make_video("v5", transcript=TranscriptRecord(status=TranscriptStatus.PROCESSING))
    )
    return videos


@pytest.fixture
def transcript_client(mock_client, transcript_videos):
    by_id = {video.id: video for video in transcript_videos}

    async def list_videos(cursor=None, limit=None, playlist_id=None):
        return paginate(transcript_videos, cursor, limit or 50)

    async def get_video(video_id):
        return by_id[video_id]

    mock_client.list_videos.side_effect = list_videos
    mock_client.get_video.side_effect = get_video
    return mock_client


@pytest.fixture
def transcript_sync(transcript_client, orchestrator, transcript_cache):
    return TranscriptSync(orchestrator, transcript_cache)


def fetched_ids(client) -> list[str]:
    return [call.args[0] for call in client.get_video.await_args_list]


class TestLoad:
    async def test_first_load_fetches_everything(self, transcript_sync, transcript_client):
        result = await transcript_sync.load()

        assert sorted(fetched_ids(transcript_client)) == ["v1", "v2", "v3", "v4", "v5"]
        assert result.cached_count == 0
        assert result.new_count == 5
        assert [item.video.id for item in result.ready_items] == ["v1", "v2", "v3", "v4"]

    async def test_only_ready_transcripts_are_cached(self, transcript_sync, transcript_cache):
        await transcript_sync.load()

        assert await transcript_cache.cached_ids() == {"v1", "v2", "v3", "v4"}

    async def test_second_load_fetches_only_missing(
        self, transcript_sync, transcript_client
    ):
        await transcript_sync.load()
        transcript_client.get_video.reset_mock()

        result = await transcript_sync.load()

        # The processing transcript was never cached, so it is retried
        assert fetched_ids(transcript_client) == ["v5"]
        assert result.cached_count == 4
        assert result.new_count == 1
        assert len(result.ready_items) == 4

    async def test_cached_entries_are_reused_verbatim(
        self, transcript_sync, transcript_cache, transcript_client, video_cache,
        transcript_videos,
    ):
        await video_cache.write(transcript_videos)
        await transcript_cache.merge(
            {"v1": CachedTranscript(status=TranscriptStatus.READY, text="from cache")}
        )

        result = await transcript_sync.load()

        assert "v1" not in fetched_ids(transcript_client)
        assert result.items[0].transcript.text == "from cache"

    async def test_deleted_videos_are_pruned(
        self, transcript_sync, transcript_cache, video_cache, transcript_videos
    ):
        await transcript_cache.merge(
            {"gone": CachedTranscript(status=TranscriptStatus.READY, text="old")}
        )
        await video_cache.write(transcript_videos)

        await transcript_sync.load()

        assert "gone" not in await transcript_cache.cached_ids()

    async def test_force_refresh_refetches_everything(
        self, transcript_sync, transcript_client
    ):
        await transcript_sync.load()
        transcript_client.get_video.reset_mock()

        result = await transcript_sync.load(force_refresh=True)

        assert len(fetched_ids(transcript_client)) == 5
        assert result.cached_count == 0

    async def test_uses_cached_video_list(
        self, transcript_sync, transcript_client, video_cache, transcript_videos
    ):
        await video_cache.write(transcript_videos)

        await transcript_sync.load()

        transcript_client.list_videos.assert_not_awaited()

    async def test_empty_video_cache_triggers_full_fetch(
        self, transcript_sync, transcript_client, video_cache
    ):
        await transcript_sync.load()

        assert transcript_client.list_videos.await_count == 3  # page_size 2, 5 videos
        assert len((await video_cache.read()).videos) == 5

    async def test_failed_fetches_are_retried_next_time(
        self, transcript_sync, transcript_client, transcript_videos
    ):
        by_id = {video.id: video for video in transcript_videos}

        async def flaky_get_video(video_id):
            if video_id == "v2":
                raise CatalogConnectionError("boom")
            return by_id[video_id]

        transcript_client.get_video.side_effect = flaky_get_video
        result = await transcript_sync.load()

        assert result.failed_count == 1
        assert result.items[1].transcript is None

        async def get_video(video_id):
            return by_id[video_id]

        transcript_client.get_video.side_effect = get_video
        transcript_client.get_video.reset_mock()
        await transcript_sync.load()

        assert "v2" in fetched_ids(transcript_client)

    async def test_progress_reported_per_batch(self, transcript_sync):
        progress = AsyncMock()

        await transcript_sync.load(on_progress=progress)

        # fetch_concurrency is 2 in the test settings
        assert [call.args for call in progress.await_args_list] == [(2, 5), (4, 5), (5, 5)]

    async def test_video_list_failure_propagates(self, transcript_sync, transcript_client):
        transcript_client.list_videos.side_effect = CatalogConnectionError("down")

        with pytest.raises(CatalogConnectionError):
            await transcript_sync.load()


class TestSearch:
    async def test_query_matches_case_insensitively(self, transcript_sync):
        result = await transcript_sync.load()

        matches = TranscriptSync.search(result, "ONBOARDING")

        assert [m.video_id for m in matches] == ["v1", "v4"]
        assert "`onboarding`" in matches[0].excerpt

    async def test_no_query_returns_all_ready(self, transcript_sync):
        result = await transcript_sync.load()

        matches = TranscriptSync.search(result, None)

        assert len(matches) == 4
        assert matches[0].excerpt.startswith("Welcome")

    async def test_no_match(self, transcript_sync):
        result = await transcript_sync.load()

        assert TranscriptSync.search(result, "kubernetes") == []

    async def test_language_survives_cached_loads(
        self, transcript_sync, transcript_client, transcript_videos
    ):
        german = make_video(
            "v1",
            transcript=TranscriptRecord(
                status=TranscriptStatus.READY, text="Willkommen zum Onboarding", language="de"
            ),
        )
        transcript_videos[0] = german

        async def get_video(video_id):
            return {video.id: video for video in transcript_videos}[video_id]

        transcript_client.get_video.side_effect = get_video

        first = TranscriptSync.search(await transcript_sync.load(), "willkommen")
        second = TranscriptSync.search(await transcript_sync.load(), "willkommen")

        assert first[0].language == "de"
        assert second[0].language == "de"

    async def test_legacy_cached_entry_has_no_language(
        self, transcript_sync, transcript_cache, video_cache, transcript_videos
    ):
        await video_cache.write(transcript_videos)
        await transcript_cache.merge(
            {"v1": CachedTranscript(status=TranscriptStatus.READY, text="Welcome aboard")}
        )

        matches = TranscriptSync.search(await transcript_sync.load(), "aboard")

        assert matches[0].video_id == "v1"
        assert matches[0].language is None
