"""
Shared JSON envelope handling for cache components.

Each cache entry is one whole JSON document under one store key; these
helpers translate between StoreResult[str] and StoreResult[model] and
turn decode problems into CacheError results.
"""

import json
import logging
from typing import TypeVar

from pydantic import BaseModel, ValidationError

from catalog_sync.logging_config import DISCARDED_LOGGER
from catalog_sync.models.cache import CACHE_SCHEMA_VERSION, CacheError, StoreResult
from catalog_sync.models.schemas import CatalogModel
from catalog_sync.services.storage import KeyValueStore

logger = logging.getLogger(__name__)
discarded_logger = logging.getLogger(DISCARDED_LOGGER)

M = TypeVar("M", bound=BaseModel)


async def load_entry(
    store: KeyValueStore, key: str, model_class: type[M]
) -> StoreResult[M]:
    """
    Read and validate a cache envelope.

    Args:
        store: Key-value store
        key: Store key
        model_class: Envelope model to validate into

    Returns:
        StoreResult with the envelope, None value if absent,
        or a CacheError for store failures and corrupt or unknown entries
    """
    try:
        raw = await store.get(key)
    except Exception as e:
        return StoreResult.failure(CacheError("Store read raised", key, "get", e))

    if not raw.ok:
        return StoreResult.failure(raw.error)
    if not raw.value:
        return StoreResult.success(None)

    try:
        data = json.loads(raw.value)
    except ValueError as e:
        return StoreResult.failure(
            CacheError("Corrupt cache entry (invalid JSON)", key, "decode", e)
        )

    if not isinstance(data, dict):
        return StoreResult.failure(
            CacheError("Corrupt cache entry (not an object)", key, "decode")
        )

    version = data.get("schemaVersion", 1)
    if not isinstance(version, int) or version > CACHE_SCHEMA_VERSION:
        return StoreResult.failure(
            CacheError(f"Unsupported cache schema version {version!r}", key, "decode")
        )

    try:
        return StoreResult.success(model_class.model_validate(data))
    except ValidationError as e:
        return StoreResult.failure(
            CacheError("Cache entry does not match schema", key, "decode", e)
        )


async def save_entry(
    store: KeyValueStore, key: str, entry: CatalogModel
) -> StoreResult[None]:
    """Serialize an envelope and overwrite the store value."""
    try:
        payload = json.dumps(entry.to_wire(), ensure_ascii=False)
        return await store.set(key, payload)
    except Exception as e:
        return StoreResult.failure(CacheError("Store write raised", key, "set", e))


async def remove_entry(store: KeyValueStore, key: str) -> StoreResult[None]:
    """Delete a store value."""
    try:
        return await store.remove(key)
    except Exception as e:
        return StoreResult.failure(CacheError("Store remove raised", key, "remove", e))


def discard(result: StoreResult, action: str) -> None:
    """
    Drop a failed persistence result after logging it.

    The local store is an optimization, never a source of truth:
    failures degrade to cache miss / no-op here.
    """
    if not result.ok:
        discarded_logger.warning(
            f"Cache {action} failed, continuing without cache: {result.error}",
            extra={"cache_key": result.error.key},
        )
