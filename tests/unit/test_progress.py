"""
Unit tests for progress counters and the snapshot emitter.
"""

import asyncio

import pytest

from fuzz_hunter.fuzzing.models import Progress
from fuzz_hunter.fuzzing.progress import ProgressCounter, ProgressEmitter


class TestProgressCounter:

    def test_retries_inflate_the_estimate(self):
        counter = ProgressCounter()
        counter.add_expected(10)
        counter.record_attempt()
        counter.record_retry()
        counter.record_attempt()

        assert counter.snapshot() == Progress(done_requests=2, approx_requests=11)

    def test_percent(self):
        assert Progress(5, 20).percent == 25
        assert Progress(5, 0).percent == 0


class TestProgressEmitter:

    @pytest.mark.asyncio
    async def test_waits_for_wordlist_count(self):
        counter = ProgressCounter()
        channel = asyncio.Queue()
        wordlist_read = asyncio.Event()
        task = asyncio.create_task(ProgressEmitter(counter, channel, 0.001, wordlist_read).run())

        await asyncio.sleep(0.02)
        assert channel.empty()

        counter.add_expected(4)
        counter.record_attempt()
        wordlist_read.set()
        snapshot = await asyncio.wait_for(channel.get(), timeout=1)

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        assert snapshot == Progress(done_requests=1, approx_requests=4)

    @pytest.mark.asyncio
    async def test_emits_periodically_until_cancelled(self):
        counter = ProgressCounter()
        channel = asyncio.Queue()
        wordlist_read = asyncio.Event()
        wordlist_read.set()
        task = asyncio.create_task(ProgressEmitter(counter, channel, 0.001, wordlist_read).run())

        for _ in range(3):
            await asyncio.wait_for(channel.get(), timeout=1)
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

        assert task.cancelled()
