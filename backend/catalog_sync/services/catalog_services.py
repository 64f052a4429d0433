"""
Process-wide wiring of the cache and sync components.

Builds one shared client, store, caches and orchestrator from settings,
so the HTTP layer (and scripts) work against the same in-flight
refreshes and load sessions.
"""

import logging
from dataclasses import dataclass

from catalog_sync.config import Settings, get_settings
from catalog_sync.services.cache import (
    DurationCache,
    TranscriptDeltaCache,
    VideoCollectionCache,
)
from catalog_sync.services.catalog_client import CatalogClient
from catalog_sync.services.storage import FileKeyValueStore, KeyValueStore
from catalog_sync.services.sync import TranscriptSync, VideoSyncOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class CatalogServices:
    """Shared service instances."""

    settings: Settings
    client: CatalogClient
    store: KeyValueStore
    video_cache: VideoCollectionCache
    transcript_cache: TranscriptDeltaCache
    duration_cache: DurationCache
    orchestrator: VideoSyncOrchestrator
    transcript_sync: TranscriptSync

    @classmethod
    def build(
        cls,
        settings: Settings,
        client: CatalogClient | None = None,
        store: KeyValueStore | None = None,
    ) -> "CatalogServices":
        """
        Wire all components.

        Args:
            settings: Application settings
            client: Catalog client (created from settings if None)
            store: Key-value store (file store under settings.store_dir if None)
        """
        client = client or CatalogClient.from_settings(settings)
        store = store or FileKeyValueStore.from_settings(settings)

        video_cache = VideoCollectionCache(store)
        transcript_cache = TranscriptDeltaCache(store)
        duration_cache = DurationCache(store)
        orchestrator = VideoSyncOrchestrator(
            client, video_cache, settings, duration_cache=duration_cache
        )

        return cls(
            settings=settings,
            client=client,
            store=store,
            video_cache=video_cache,
            transcript_cache=transcript_cache,
            duration_cache=duration_cache,
            orchestrator=orchestrator,
            transcript_sync=TranscriptSync(orchestrator, transcript_cache),
        )

    async def close(self) -> None:
        await self.client.close()


_services: CatalogServices | None = None


def get_services() -> CatalogServices:
    """Get the global services instance (created on first use)."""
    global _services
    if _services is None:
        _services = CatalogServices.build(get_settings())
        logger.info(f"Catalog services ready (store: {get_settings().store_dir})")
    return _services


def set_services(services: CatalogServices | None) -> None:
    """Replace the global services instance (tests, shutdown)."""
    global _services
    _services = services
