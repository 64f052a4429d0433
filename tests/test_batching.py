"""Tests for bounded batched fan-out."""

import asyncio

import pytest

from catalog_sync.utils.batching import gather_in_batches


class ConcurrencyProbe:
    """Worker recording how many calls are in flight at once."""

    def __init__(self, fail: set | None = None):
        self.in_flight = 0
        self.max_in_flight = 0
        self.started: list = []
        self.fail = fail or set()

    async def __call__(self, item):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.started.append(item)
        try:
            await asyncio.sleep(0.01)
            if item in self.fail:
                raise ValueError(f"failed {item}")
            return item * 10
        finally:
            self.in_flight -= 1


@pytest.mark.parametrize("concurrency", [1, 2, 5])
async def test_never_exceeds_concurrency(concurrency):
    probe = ConcurrencyProbe()

    outcome = await gather_in_batches(list(range(12)), probe, concurrency)

    assert probe.max_in_flight <= concurrency
    assert outcome.results == {i: i * 10 for i in range(12)}


async def test_batches_run_sequentially():
    probe = ConcurrencyProbe()
    progress = []

    async def on_progress(done, total):
        # Every item of the finished batch has completed by now
        assert probe.in_flight == 0
        progress.append((done, total))

    await gather_in_batches(list(range(7)), probe, 3, on_progress)

    assert progress == [(3, 7), (6, 7), (7, 7)]


async def test_failures_do_not_abort_batch_or_loop():
    probe = ConcurrencyProbe(fail={1, 4})

    outcome = await gather_in_batches(list(range(6)), probe, 2)

    assert set(outcome.results) == {0, 2, 3, 5}
    assert set(outcome.failures) == {1, 4}
    assert isinstance(outcome.failures[1], ValueError)
    assert probe.started == list(range(6))


async def test_empty_input():
    probe = ConcurrencyProbe()

    outcome = await gather_in_batches([], probe, 5)

    assert outcome.results == {}
    assert probe.started == []


async def test_zero_concurrency_treated_as_one():
    probe = ConcurrencyProbe()

    await gather_in_batches([1, 2, 3], probe, 0)

    assert probe.max_in_flight == 1


async def test_cancellation_propagates():
    async def worker(item):
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await gather_in_batches([1], worker, 1)
