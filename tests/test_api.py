"""Tests for the HTTP API (FastAPI TestClient)."""

import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from catalog_sync.main import app
from catalog_sync.services.catalog_client import CatalogConfigError, CatalogConnectionError
from catalog_sync.services.catalog_services import CatalogServices, set_services
from factories import make_video, paginate, ready_transcript


@pytest.fixture
def services(settings, mock_client, memory_store):
    settings.details_batch_limit = 2
    services = CatalogServices.build(settings, client=mock_client, store=memory_store)
    set_services(services)
    yield services
    set_services(None)


@pytest.fixture
def api(services):
    with TestClient(app) as client:
        yield client


def ids(payload) -> list[str]:
    return [video["id"] for video in payload["videos"]]


class TestHealth:
    def test_health(self, api):
        assert api.get("/health").json() == {"status": "ok"}

    def test_services_health(self, api, services):
        data = api.get("/health/services").json()

        assert data["catalog"] is True
        assert data["cache_duration_minutes"] == 30


class TestVideos:
    def test_cache_miss_fetches_and_sorts_newest_first(self, api):
        response = api.get("/api/videos")

        assert response.status_code == 200
        data = response.json()
        assert ids(data) == ["v5", "v4", "v3", "v2", "v1"]
        assert data["source"] == "fetch"
        assert data["state"] == "ready_from_fetch"
        assert data["freshness"] == "fresh"
        assert data["videos"][0]["updatedAt"].startswith("2025-06-15")

    def test_second_request_served_from_cache(self, api, mock_client):
        api.get("/api/videos")
        api.get("/api/videos")

        # Still the single full fetch of the first request
        assert mock_client.list_videos.await_count == 3

    def test_filter_and_sort(self, api):
        data = api.get("/api/videos", params={"q": "o", "sort": "views-desc"}).json()

        assert ids(data) == ["v2", "v5", "v1", "v4"]

    def test_invalid_sort_rejected(self, api):
        assert api.get("/api/videos", params={"sort": "random"}).status_code == 422

    def test_total_duration_from_cache(self, api, services):
        asyncio.run(services.duration_cache.write({"v1": 60.0, "v2": 30.0, "zz": 5.0}))

        data = api.get("/api/videos").json()

        assert data["total_duration_seconds"] == 90.0

    def test_missing_api_key_is_401(self, api, mock_client):
        mock_client.list_videos.side_effect = CatalogConfigError("Catalog API key is required")

        response = api.get("/api/videos")

        assert response.status_code == 401

    def test_refresh(self, api, mock_client):
        api.get("/api/videos")

        data = api.post("/api/videos/refresh").json()

        assert data["source"] == "fetch"
        assert mock_client.list_videos.await_count == 6

    def test_refresh_failure_is_502(self, api, mock_client):
        api.get("/api/videos")
        mock_client.list_videos.side_effect = CatalogConnectionError("offline")

        assert api.post("/api/videos/refresh").status_code == 502


class TestFallback:
    @pytest.fixture
    def broken_full_fetch(self, mock_client, sample_videos, settings):
        settings.fallback_page_size = 3

        async def list_videos(cursor=None, limit=None, playlist_id=None):
            if limit == 2:
                raise CatalogConnectionError("offline")
            return paginate(sample_videos, cursor, limit)

        mock_client.list_videos.side_effect = list_videos
        return mock_client

    def test_pagination_mode(self, api, broken_full_fetch):
        data = api.get("/api/videos").json()

        assert data["source"] == "pagination"
        assert data["has_more"] is True
        assert data["error"] == "offline"
        assert len(data["videos"]) == 3

        more = api.get("/api/videos/more").json()
        assert len(more["videos"]) == 5
        assert more["has_more"] is False

    def test_more_outside_fallback_is_409(self, api):
        api.get("/api/videos")

        assert api.get("/api/videos/more").status_code == 409

    def test_reset_leaves_fallback(self, api, broken_full_fetch, sample_videos):
        api.get("/api/videos")

        async def healthy(cursor=None, limit=None, playlist_id=None):
            return paginate(sample_videos, cursor, limit)

        broken_full_fetch.list_videos.side_effect = healthy
        data = api.post("/api/videos/refresh", params={"reset": True}).json()

        assert data["source"] == "fetch"
        assert len(data["videos"]) == 5


class TestDetails:
    def test_fetches_up_to_limit(self, api, mock_client):
        response = api.post("/api/videos/details", json={"ids": ["v1", "v2", "v3"]})

        data = response.json()
        assert set(data["videos"]) == {"v1", "v2"}
        assert data["skipped"] == ["v3"]
        assert data["missing"] == []

    def test_empty_ids_rejected(self, api):
        assert api.post("/api/videos/details", json={"ids": []}).status_code == 422


class TestTranscripts:
    @pytest.fixture
    def with_transcripts(self, mock_client, sample_videos):
        videos = {
            video.id: make_video(
                video.id, video.name, transcript=ready_transcript(f"Notes about {video.name}")
            )
            for video in sample_videos
        }

        async def get_video(video_id):
            return videos[video_id]

        mock_client.get_video.side_effect = get_video
        return mock_client

    def test_search(self, api, with_transcripts):
        data = api.get("/api/transcripts", params={"q": "product"}).json()

        assert [m["video_id"] for m in data["matches"]] == ["v2"]
        assert "`Product`" in data["matches"][0]["excerpt"]
        assert data["total_videos"] == 5
        assert data["new_count"] == 5

    def test_second_search_uses_cache(self, api, with_transcripts):
        api.get("/api/transcripts")
        with_transcripts.get_video.reset_mock()

        data = api.get("/api/transcripts").json()

        assert data["cached_count"] == 5
        assert data["new_count"] == 0
        with_transcripts.get_video.assert_not_awaited()

    def test_stream_reports_progress_then_result(self, api, with_transcripts):
        with api.stream("GET", "/api/transcripts/stream", params={"q": "tour"}) as response:
            events = [
                json.loads(line[len("data: "):])
                for line in response.iter_lines()
                if line.startswith("data: ")
            ]

        progress = [e for e in events if e["type"] == "progress"]
        assert [(e["done"], e["total"]) for e in progress] == [(2, 5), (4, 5), (5, 5)]
        assert events[-1]["type"] == "result"
        assert events[-1]["data"]["matches"][0]["video_id"] == "v2"


class TestCacheRoutes:
    def test_clear_videos(self, api, services, mock_client):
        api.get("/api/videos")

        response = api.delete("/api/cache/videos")

        assert response.json() == {"cleared": "videos", "partition": None}
        api.get("/api/videos")
        assert mock_client.list_videos.await_count == 6

    def test_clear_transcripts(self, api, services, memory_store):
        api.get("/api/transcripts")
        assert "tella-transcripts-cache" not in memory_store.data  # no ready transcripts

        response = api.delete("/api/cache/transcripts")

        assert response.json()["cleared"] == "transcripts"
