"""
Transcript text helpers for search results.
"""

import re

EXCERPT_BEFORE = 200
EXCERPT_AFTER = 300
PREVIEW_LENGTH = 500


def highlight_excerpt(text: str, query: str | None) -> str:
    """
    Build a search excerpt around the first match of `query`.

    Takes 200 chars before and 300 after the first match, marks cut
    ends with "..." and wraps every match in backticks. Without a query
    (or without a match) returns the first 500 chars.

    Args:
        text: Full transcript text
        query: Search query

    Returns:
        Excerpt string
    """
    if not query:
        return text[:PREVIEW_LENGTH] + "..."

    index = text.lower().find(query.lower())
    if index == -1:
        return text[:PREVIEW_LENGTH] + "..."

    start = max(0, index - EXCERPT_BEFORE)
    end = min(len(text), index + len(query) + EXCERPT_AFTER)
    excerpt = text[start:end]

    if start > 0:
        excerpt = "..." + excerpt
    if end < len(text):
        excerpt = excerpt + "..."

    pattern = re.compile(f"({re.escape(query)})", re.IGNORECASE)
    return pattern.sub(r"`\1`", excerpt)
