"""
Remote catalog API client.

Async HTTP client for the video catalog REST API with rate-limit
handling. HTTP 429 is retried with the server's Retry-After delay, or
exponential backoff (0.5s, 1s, ...) when the header is absent, for at
most 3 attempts in total; after that the rate-limit error propagates.

Example:
    async with CatalogClient.from_settings(settings) as client:
        page = await client.list_videos(limit=50)
        video = await client.get_video(page.items[0].id)
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from tenacity import (
    RetryCallState,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
)

from catalog_sync.config import Settings
from catalog_sync.models.schemas import Page, Playlist, VideoRecord
from catalog_sync.services.catalog_client.base import (
    CatalogClientConfig,
    CatalogConfigError,
    CatalogConnectionError,
    CatalogRateLimitError,
    CatalogResponseError,
    CatalogTimeoutError,
)

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
BACKOFF_BASE_SECONDS = 0.5


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds; None if absent or invalid."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds > 0 else None


def wait_for_rate_limit(retry_state: RetryCallState) -> float:
    """Server-provided Retry-After, else 0.5s doubling per attempt."""
    error = retry_state.outcome.exception() if retry_state.outcome else None
    retry_after = getattr(error, "retry_after", None)
    if retry_after:
        return float(retry_after)
    return BACKOFF_BASE_SECONDS * 2 ** (retry_state.attempt_number - 1)


# Retry configuration for rate-limited requests
RATE_LIMIT_RETRY = retry(
    stop=stop_after_attempt(MAX_ATTEMPTS),
    wait=wait_for_rate_limit,
    retry=retry_if_exception_type(CatalogRateLimitError),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)


def _page(data: dict, key: str, model: type) -> Page:
    pagination = data.get("pagination") or {}
    return Page(
        items=[model.model_validate(item) for item in data.get(key, [])],
        next_cursor=pagination.get("nextCursor"),
        has_more=bool(pagination.get("hasMore")),
    )


def _segment(value: str) -> str:
    return quote(value, safe="")


class CatalogClient:
    """
    Async client for the remote video catalog.

    Handles authentication and rate-limit retry; everything else
    (timeouts, transport errors, non-2xx responses) is raised as a
    CatalogClientError subclass.
    """

    def __init__(
        self,
        config: CatalogClientConfig,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize catalog client.

        Args:
            config: Client configuration with URL, key and timeout
            http_client: Pre-built httpx client (tests inject a mock transport)
        """
        self.config = config
        self.http_client = http_client or httpx.AsyncClient(
            base_url=config.base_url,
            timeout=config.timeout,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "CatalogClient":
        """
        Create CatalogClient from application settings.

        A missing API key is not an error here; it is raised on the
        first remote call.
        """
        config = CatalogClientConfig(
            base_url=settings.catalog_api_url,
            api_key=settings.catalog_api_key,
            timeout=settings.request_timeout,
        )
        return cls(config)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http_client.aclose()

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _auth_headers(self) -> dict[str, str]:
        if not self.config.api_key:
            raise CatalogConfigError(
                "Catalog API key is required. Set CATALOG_API_KEY."
            )
        return {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

    @RATE_LIMIT_RETRY
    async def _request(
        self,
        method: str,
        path: str,
        params: dict | None = None,
        json: Any = None,
    ) -> Any:
        """
        Send one API request.

        Args:
            method: HTTP method
            path: Path relative to the API base URL
            params: Query parameters (None values are dropped)
            json: JSON body

        Returns:
            Decoded JSON body ({} for empty responses)

        Raises:
            CatalogClientError: On any failure after retries
        """
        headers = self._auth_headers()
        query = {k: v for k, v in (params or {}).items() if v is not None}

        try:
            response = await self.http_client.request(
                method, path, params=query or None, json=json, headers=headers
            )
        except httpx.TimeoutException as e:
            logger.error(f"{method} {path} timed out: {e}")
            raise CatalogTimeoutError(
                "Request timeout", endpoint=path, original_error=e
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Cannot reach catalog API: {e}")
            raise CatalogConnectionError(
                f"Cannot connect to catalog API at {self.config.base_url}",
                endpoint=path,
                original_error=e,
            ) from e

        if response.status_code == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            raise CatalogRateLimitError(
                "Rate limited", retry_after=retry_after, endpoint=path
            )

        if response.is_error:
            body = response.text[:500]
            logger.error(f"{method} {path} failed: HTTP {response.status_code}")
            raise CatalogResponseError(
                f"{response.status_code} {response.reason_phrase}: {body}",
                status_code=response.status_code,
                response_body=body,
                endpoint=path,
            )

        if not response.content:
            return {}
        return response.json()

    # ═══════════════════════════════════════════════════════════════════════
    # Videos
    # ═══════════════════════════════════════════════════════════════════════

    async def list_videos(
        self,
        cursor: str | None = None,
        limit: int | None = None,
        playlist_id: str | None = None,
    ) -> Page[VideoRecord]:
        """List one page of videos, optionally scoped to a playlist."""
        data = await self._request(
            "GET",
            "/videos",
            params={"cursor": cursor, "limit": limit, "playlistId": playlist_id},
        )
        page = _page(data, "videos", VideoRecord)
        logger.debug(f"Listed {len(page.items)} videos (has_more={page.has_more})")
        return page

    async def get_video(self, video_id: str) -> VideoRecord:
        """Get full video details, including transcript."""
        data = await self._request("GET", f"/videos/{_segment(video_id)}")
        return VideoRecord.model_validate(data["video"])

    async def update_video(self, video_id: str, data: dict) -> VideoRecord:
        result = await self._request("PATCH", f"/videos/{_segment(video_id)}", json=data)
        return VideoRecord.model_validate(result["video"])

    async def delete_video(self, video_id: str) -> None:
        await self._request("DELETE", f"/videos/{_segment(video_id)}")

    async def duplicate_video(self, video_id: str, name: str | None = None) -> VideoRecord:
        result = await self._request(
            "POST", f"/videos/{_segment(video_id)}/duplicate", json={"name": name}
        )
        return VideoRecord.model_validate(result["video"])

    async def start_video_export(self, video_id: str, data: dict) -> dict:
        return await self._request(
            "POST", f"/videos/{_segment(video_id)}/exports", json=data
        )

    # ═══════════════════════════════════════════════════════════════════════
    # Playlists
    # ═══════════════════════════════════════════════════════════════════════

    async def list_playlists(
        self,
        visibility: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> Page[Playlist]:
        data = await self._request(
            "GET",
            "/playlists",
            params={"visibility": visibility, "cursor": cursor, "limit": limit},
        )
        return _page(data, "playlists", Playlist)

    async def get_playlist(self, playlist_id: str) -> Playlist:
        data = await self._request("GET", f"/playlists/{_segment(playlist_id)}")
        return Playlist.model_validate(data.get("playlist", data))

    async def create_playlist(self, data: dict) -> Playlist:
        result = await self._request("POST", "/playlists", json=data)
        return Playlist.model_validate(result.get("playlist", result))

    async def update_playlist(self, playlist_id: str, data: dict) -> Playlist:
        result = await self._request(
            "PATCH", f"/playlists/{_segment(playlist_id)}", json=data
        )
        return Playlist.model_validate(result.get("playlist", result))

    async def delete_playlist(self, playlist_id: str) -> None:
        await self._request("DELETE", f"/playlists/{_segment(playlist_id)}")

    async def add_video_to_playlist(self, playlist_id: str, video_id: str) -> None:
        await self._request(
            "POST",
            f"/playlists/{_segment(playlist_id)}/videos",
            json={"videoId": video_id},
        )

    async def remove_video_from_playlist(self, playlist_id: str, video_id: str) -> None:
        await self._request(
            "DELETE",
            f"/playlists/{_segment(playlist_id)}/videos/{_segment(video_id)}",
        )

    async def check_service(self) -> dict:
        """
        Check availability of the catalog API.

        Returns:
            {"catalog": bool, "error": str | None}
        """
        try:
            await self.list_videos(limit=1)
            return {"catalog": True, "error": None}
        except Exception as e:
            logger.debug(f"Catalog API not available: {e}")
            return {"catalog": False, "error": str(e)}
