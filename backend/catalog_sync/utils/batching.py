"""
Bounded-concurrency fan-out in sequential batches.

Items are processed in windows of `concurrency`: every request of a
window runs concurrently, all outcomes (including failures) are awaited,
and only then does the next window start. One item's failure never
aborts its siblings or the loop.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
R = TypeVar("R")

# Signature: (done, total) -> None
BatchProgressCallback = Callable[[int, int], Awaitable[None]]


@dataclass
class BatchOutcome(Generic[K, R]):
    """
    Collected results of a batched run.

    Attributes:
        results: item -> result for successful items
        failures: item -> exception for failed items
    """

    results: dict[K, R] = field(default_factory=dict)
    failures: dict[K, Exception] = field(default_factory=dict)


async def gather_in_batches(
    items: Sequence[K],
    worker: Callable[[K], Awaitable[R]],
    concurrency: int = 5,
    on_progress: BatchProgressCallback | None = None,
) -> BatchOutcome[K, R]:
    """
    Run `worker` over `items` with at most `concurrency` calls in flight.

    Args:
        items: Work items (hashable, e.g. video ids)
        worker: Async callable processing one item
        concurrency: Batch size (values below 1 are treated as 1)
        on_progress: Optional async callback after each batch

    Returns:
        BatchOutcome with per-item results and failures
    """
    size = max(1, concurrency)
    total = len(items)
    outcome: BatchOutcome[K, R] = BatchOutcome()

    for start in range(0, total, size):
        batch = items[start : start + size]
        results = await asyncio.gather(
            *(worker(item) for item in batch),
            return_exceptions=True,
        )

        for item, result in zip(batch, results):
            if isinstance(result, Exception):
                logger.debug(f"Batch item {item!r} failed: {result}")
                outcome.failures[item] = result
            elif isinstance(result, BaseException):
                raise result
            else:
                outcome.results[item] = result

        if on_progress is not None:
            await on_progress(min(start + size, total), total)

    if outcome.failures:
        logger.info(f"{len(outcome.failures)} of {total} batched requests failed")

    return outcome
