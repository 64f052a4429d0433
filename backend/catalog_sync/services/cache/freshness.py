"""
Cache freshness policy.

Pure functions classifying a cache entry's age. The configured duration
is passed in explicitly by the caller on every check.

    age < 5 min                    -> FRESH    (use as is)
    5 min <= age < duration        -> STALE    (use, refresh in background)
    age >= duration                -> EXPIRED  (use, refresh in background)
    duration == 0, age >= 5 min    -> MANUAL   (use, refresh only on demand)

A `fetched_at` in the future (clock skew) gives a negative age, which is
FRESH.
"""

from datetime import datetime, timedelta, timezone
from enum import Enum

FRESH_THRESHOLD = timedelta(minutes=5)


class Freshness(str, Enum):
    """Freshness classification of a cache entry."""

    FRESH = "fresh"
    STALE = "stale"
    EXPIRED = "expired"
    MANUAL = "manual"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def cache_age(fetched_at: datetime, now: datetime | None = None) -> timedelta:
    """Age of an entry; negative when fetched_at lies in the future."""
    now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    return now - _as_utc(fetched_at)


def is_fresh(
    fetched_at: datetime, duration_minutes: int, now: datetime | None = None
) -> bool:
    """Entry is young enough to need no background action."""
    return cache_age(fetched_at, now) < FRESH_THRESHOLD


def is_stale(
    fetched_at: datetime, duration_minutes: int, now: datetime | None = None
) -> bool:
    """Entry is usable but older than the fresh threshold and within duration."""
    if duration_minutes == 0:
        return False
    age = cache_age(fetched_at, now)
    return FRESH_THRESHOLD <= age < timedelta(minutes=duration_minutes)


def is_expired(
    fetched_at: datetime, duration_minutes: int, now: datetime | None = None
) -> bool:
    """Entry is older than the configured duration."""
    if duration_minutes == 0:
        return False
    return cache_age(fetched_at, now) >= timedelta(minutes=duration_minutes)


def classify(
    fetched_at: datetime, duration_minutes: int, now: datetime | None = None
) -> Freshness:
    """
    Classify an entry's age.

    Args:
        fetched_at: When the entry was written by a full fetch
        duration_minutes: Configured cache duration (0 = manual only)
        now: Reference time (defaults to current UTC time)

    Returns:
        Freshness classification
    """
    if is_fresh(fetched_at, duration_minutes, now):
        return Freshness.FRESH
    if is_expired(fetched_at, duration_minutes, now):
        return Freshness.EXPIRED
    if is_stale(fetched_at, duration_minutes, now):
        return Freshness.STALE
    return Freshness.MANUAL


def needs_background_refresh(freshness: Freshness) -> bool:
    """Stale and expired entries both trigger a background refresh."""
    return freshness in (Freshness.STALE, Freshness.EXPIRED)
