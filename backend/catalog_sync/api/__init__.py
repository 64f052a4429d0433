"""API routes."""

from catalog_sync.api import cache_routes, routes, transcript_routes

__all__ = ["routes", "transcript_routes", "cache_routes"]
