# tests/conftest.py
"""Shared fixtures for catalog_sync tests."""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from catalog_sync.config import Settings
from catalog_sync.models.cache import VideoCacheEntry
from catalog_sync.models.schemas import VideoRecord
from catalog_sync.services.cache import (
    DurationCache,
    TranscriptDeltaCache,
    VideoCollectionCache,
    cache_key,
)
from catalog_sync.services.catalog_client import CatalogClient
from catalog_sync.services.storage import MemoryKeyValueStore
from catalog_sync.services.sync import VideoSyncOrchestrator
from factories import BASE_TIME, make_video, paginate


@pytest.fixture
def sample_videos():
    """Five videos with distinct dates, views and names."""
    return [
        make_video("v1", "Onboarding basics", BASE_TIME - timedelta(days=4), views=10),
        make_video("v2", "Product tour", BASE_TIME - timedelta(days=3), views=50),
        make_video("v3", "API deep dive", BASE_TIME - timedelta(days=2), views=5),
        make_video("v4", "Release notes", BASE_TIME - timedelta(days=1), views=0),
        make_video("v5", "Customer call", BASE_TIME, views=25),
    ]


@pytest.fixture
def settings(tmp_path):
    """Settings isolated from the environment and the user's home directory."""
    return Settings(
        _env_file=None,
        catalog_api_key="test-key",
        data_root=tmp_path,
        cache_duration="30",
        fetch_concurrency=2,
        page_size=2,
        fallback_page_size=2,
    )


@pytest.fixture
def memory_store():
    return MemoryKeyValueStore()


@pytest.fixture
def video_cache(memory_store):
    return VideoCollectionCache(memory_store)


@pytest.fixture
def transcript_cache(memory_store):
    return TranscriptDeltaCache(memory_store)


@pytest.fixture
def duration_cache(memory_store):
    return DurationCache(memory_store)


@pytest.fixture
def mock_client(sample_videos):
    """CatalogClient mock paging through sample_videos by offset cursor."""
    client = AsyncMock(spec=CatalogClient)
    by_id = {video.id: video for video in sample_videos}

    async def list_videos(cursor=None, limit=None, playlist_id=None):
        return paginate(sample_videos, cursor, limit or 50)

    async def get_video(video_id):
        return by_id[video_id]

    client.list_videos.side_effect = list_videos
    client.get_video.side_effect = get_video
    client.check_service.return_value = {"catalog": True, "error": None}
    return client


@pytest.fixture
def orchestrator(mock_client, video_cache, duration_cache, settings):
    return VideoSyncOrchestrator(
        mock_client, video_cache, settings, duration_cache=duration_cache
    )


@pytest.fixture
def seed_video_cache(memory_store):
    """Write a video cache entry with a chosen age straight into the store."""

    def seed(
        videos: list[VideoRecord],
        age: timedelta = timedelta(0),
        playlist_id: str | None = None,
    ) -> VideoCacheEntry:
        entry = VideoCacheEntry(
            videos=videos,
            fetched_at=datetime.now(timezone.utc) - age,
            playlist_id=playlist_id,
        )
        memory_store.data[cache_key(playlist_id)] = json.dumps(entry.to_wire())
        return entry

    return seed
