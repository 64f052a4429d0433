"""Client-side cache and synchronization layer for a remote video catalog."""

__version__ = "0.1.0"
