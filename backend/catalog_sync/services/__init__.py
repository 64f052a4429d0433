"""Catalog client, persistence, caches and sync services."""
