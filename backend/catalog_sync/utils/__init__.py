"""
Utility functions.
"""

from .batching import BatchOutcome, BatchProgressCallback, gather_in_batches
from .text_utils import highlight_excerpt
from .video_query import SortOption, filter_videos, sort_videos

__all__ = [
    "BatchOutcome",
    "BatchProgressCallback",
    "gather_in_batches",
    "highlight_excerpt",
    "SortOption",
    "filter_videos",
    "sort_videos",
]
