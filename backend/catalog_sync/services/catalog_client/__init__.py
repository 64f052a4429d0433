"""
Remote catalog client package.

Usage:
    from catalog_sync.services.catalog_client import CatalogClient, CatalogClientError

    async with CatalogClient.from_settings(settings) as client:
        page = await client.list_videos(limit=50)
"""

from catalog_sync.services.catalog_client.base import (
    CatalogClientConfig,
    CatalogClientError,
    CatalogConfigError,
    CatalogConnectionError,
    CatalogRateLimitError,
    CatalogResponseError,
    CatalogTimeoutError,
)
from catalog_sync.services.catalog_client.client import (
    MAX_ATTEMPTS,
    CatalogClient,
    parse_retry_after,
    wait_for_rate_limit,
)

__all__ = [
    # Client
    "CatalogClient",
    "CatalogClientConfig",
    "MAX_ATTEMPTS",
    "parse_retry_after",
    "wait_for_rate_limit",
    # Errors
    "CatalogClientError",
    "CatalogConfigError",
    "CatalogConnectionError",
    "CatalogRateLimitError",
    "CatalogResponseError",
    "CatalogTimeoutError",
]
