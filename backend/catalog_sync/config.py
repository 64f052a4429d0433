"""
Application configuration and settings.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Recognized values of the cache duration setting (minutes, "0" = manual only)
CACHE_DURATION_CHOICES = {"0": 0, "5": 5, "30": 30, "60": 60}
DEFAULT_CACHE_DURATION_MINUTES = 30


def parse_cache_duration(value: str | None) -> int:
    """
    Convert the enumerated cache duration setting to minutes.

    Unknown or empty values fall back to the 30 minute default,
    so a bad preference never breaks freshness checks.

    Args:
        value: Raw setting value ("0", "5", "30", "60")

    Returns:
        Duration in minutes (0 means manual refresh only)
    """
    if value is None or value == "":
        return DEFAULT_CACHE_DURATION_MINUTES

    minutes = CACHE_DURATION_CHOICES.get(str(value).strip())
    if minutes is None:
        logger.warning(
            f"Unknown cache_duration {value!r}, "
            f"using {DEFAULT_CACHE_DURATION_MINUTES} minutes"
        )
        return DEFAULT_CACHE_DURATION_MINUTES
    return minutes


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Remote catalog API
    catalog_api_url: str = "https://api.tella.com/v1"
    catalog_api_key: str | None = None
    request_timeout: float = 30.0

    # Cache behaviour
    cache_duration: str = "30"  # "0" (manual only), "5", "30", "60"
    fetch_concurrency: int = 5  # Concurrent API requests per batch
    page_size: int = 50  # Page size for full collection re-fetch
    fallback_page_size: int = 30  # Page size in fallback pagination mode
    details_batch_limit: int = 24  # Items whose details are fetched eagerly

    # Paths
    data_root: Path = Path.home() / ".video-catalog-sync"

    # Logging
    log_level: str = "INFO"
    log_format: str = "structured"  # "simple", "structured" or "json"

    # Per-module log levels (optional overrides)
    log_level_catalog_client: str | None = None
    log_level_sync: str | None = None
    log_level_cache: str | None = None
    log_level_api: str | None = None
    log_level_discarded: str | None = None  # swallowed cache and sync errors

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def cache_duration_minutes(self) -> int:
        """Configured cache duration in minutes (0 = manual only)."""
        return parse_cache_duration(self.cache_duration)

    @property
    def store_dir(self) -> Path:
        """Directory backing the persistent key-value store."""
        return self.data_root / "store"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class CacheDurationSource(BaseSettings):
    """The cache duration setting alone, read from the same env / .env sources."""

    cache_duration: str | None = None

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


def read_cache_duration(fallback: str | None = None) -> int:
    """
    Read the cache duration from its sources, bypassing the settings cache.

    Called on every freshness check, so a changed CACHE_DURATION (env or
    .env) applies to the next check without a restart.

    Args:
        fallback: Value to use when no source sets CACHE_DURATION

    Returns:
        Duration in minutes (0 means manual refresh only)
    """
    value = CacheDurationSource().cache_duration
    return parse_cache_duration(value if value is not None else fallback)
