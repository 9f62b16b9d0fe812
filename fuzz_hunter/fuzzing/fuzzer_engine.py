"""
Core fuzzing engine for content discovery.

One producer, ``concurrency`` workers and an optional progress emitter run
concurrently on the event loop:

    wordlist -> producer -> bounded queue -> workers -> hide filter -> results

The run moves through ``PRODUCING -> DRAINING -> FINISHED``. Workers are
consuming while the producer is still reading. Once the producer signals
completion the queue is closed, the workers drain it and exit, and only
then is the finish signal emitted and the result stream closed.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, List, Optional, Set

from ..core.config import FuzzConfig
from ..core.exceptions import InvocationError, WordlistError
from ..core.http_client import AsyncHTTPClient
from .models import FuzzResult, Progress, RequestDescriptor
from .progress import ProgressCounter, ProgressEmitter
from .request_invoker import RequestInvoker
from .result_filter import HideFilter
from .wordlist_manager import WordlistManager

logger = logging.getLogger(__name__)

# Placed once per worker after the last descriptor; FIFO order guarantees the
# queue is empty by the time a worker sees it.
_QUEUE_CLOSED = object()
_END_OF_STREAM = None


class EngineState(Enum):
    """Lifecycle of a fuzzing run."""
    IDLE = "idle"
    PRODUCING = "producing"
    DRAINING = "draining"
    FINISHED = "finished"


@dataclass
class FuzzingStats:
    """Summary of a fuzzing run."""
    attempts: int = 0
    results_emitted: int = 0
    results_hidden: int = 0
    dropped: int = 0
    produced: int = 0
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None

    @property
    def duration(self) -> float:
        """Get total duration in seconds."""
        end = self.end_time or time.time()
        return end - self.start_time


class ResultChannels:
    """
    One-directional streams from the engine to the output boundary.

    ``results`` is closed by a single end-of-stream marker, sent after
    ``finished`` is set and after every worker has exited.
    """

    def __init__(self, capacity: int):
        self.results: "asyncio.Queue[Optional[FuzzResult]]" = asyncio.Queue(maxsize=capacity)
        self.progress: "asyncio.Queue[Progress]" = asyncio.Queue(maxsize=capacity)
        self.finished = asyncio.Event()
        self._results_closed = False

    @property
    def results_closed(self) -> bool:
        return self._results_closed

    async def close_results(self) -> None:
        if self._results_closed:
            raise RuntimeError("Result stream already closed")
        self._results_closed = True
        await self.results.put(_END_OF_STREAM)

    def abort(self) -> None:
        """Close the result stream after a failed run; ``finished`` stays unset."""
        if self._results_closed:
            return
        self._results_closed = True
        # Results still buffered belong to a failed run
        while self.results.full():
            self.results.get_nowait()
        self.results.put_nowait(_END_OF_STREAM)

    async def iter_results(self) -> AsyncIterator[FuzzResult]:
        """Yield results until the stream is closed."""
        while True:
            result = await self.results.get()
            if result is _END_OF_STREAM:
                return
            yield result


class FuzzerEngine:
    """Concurrent wordlist fuzzing engine."""

    def __init__(
            self,
            config: FuzzConfig,
            http_client: AsyncHTTPClient,
            invoker: Optional[RequestInvoker] = None
    ):
        self.config = config
        self.http_client = http_client
        self.wordlist_manager = WordlistManager(config)
        self.invoker = invoker or RequestInvoker(config, http_client)
        self.hide_filter = HideFilter.from_config(config)

        self.counter = ProgressCounter()
        self.channels = ResultChannels(config.concurrency)
        self.stats = FuzzingStats()
        self.state = EngineState.IDLE

    @property
    def queue_size(self) -> int:
        # Large enough that workers rarely starve, small enough to bound memory
        return self.config.concurrency * self.config.concurrency

    async def run(self) -> FuzzingStats:
        """
        Run the whole pipeline to completion.

        The caller must drain ``channels.results`` concurrently, otherwise
        workers block once the result buffer is full.

        Raises:
            WordlistError: the wordlist cannot be opened; nothing is started.
        """
        if self.state is not EngineState.IDLE:
            raise RuntimeError("A FuzzerEngine can only be run once")

        # Fail fast before any task is started
        try:
            handle = self.wordlist_manager.open()
        except WordlistError:
            self.channels.abort()
            raise

        queue: "asyncio.Queue" = asyncio.Queue(maxsize=self.queue_size)
        producer_done = asyncio.Event()
        wordlist_read = asyncio.Event()

        self.stats = FuzzingStats()
        self._set_state(EngineState.PRODUCING)
        logger.info(
            f"Fuzzing {self.config.target_url} with {self.config.concurrency} workers "
            f"(keyword present: {self.config.fuzz_keyword_present})"
        )

        background: List[asyncio.Task] = [
            asyncio.create_task(self._count_wordlist(wordlist_read))
        ]
        if self.config.progress:
            emitter = ProgressEmitter(
                self.counter,
                self.channels.progress,
                self.config.progress_interval,
                wordlist_read
            )
            background.append(asyncio.create_task(emitter.run()))

        producer = asyncio.create_task(
            self.wordlist_manager.produce(handle, queue, producer_done)
        )
        workers = [
            asyncio.create_task(self._worker(worker_id, queue))
            for worker_id in range(self.config.concurrency)
        ]

        try:
            # Order matters: close the queue, wait for every worker, then finish
            self.stats.produced = await self._await_producer(producer, set(workers))
            await producer_done.wait()
            await self._close_queue(queue, len(workers))
            self._set_state(EngineState.DRAINING)
            await asyncio.gather(*workers)
        except BaseException:
            await self._cancel(producer, *workers)
            self.channels.abort()
            raise
        finally:
            await self._cancel(*background)

        self.stats.end_time = time.time()
        self._set_state(EngineState.FINISHED)
        self.channels.finished.set()
        await self.channels.close_results()

        logger.info(
            f"Fuzzing finished in {self.stats.duration:.2f}s: {self.stats.attempts} requests, "
            f"{self.stats.results_emitted} shown, {self.stats.results_hidden} hidden, "
            f"{self.stats.dropped} dropped"
        )
        return self.stats

    async def collect_results(self) -> List[FuzzResult]:
        """Run the engine and return every surfaced result."""
        run_task = asyncio.create_task(self.run())
        results = [result async for result in self.channels.iter_results()]
        await run_task
        return results

    def _set_state(self, state: EngineState) -> None:
        logger.debug(f"Engine state {self.state.value} -> {state.value}")
        self.state = state

    async def _await_producer(self, producer: asyncio.Task, workers: Set[asyncio.Task]) -> int:
        """Wait for the producer while surfacing workers that crashed early."""
        pending: Set[asyncio.Task] = {producer, *workers}
        while not producer.done():
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                if task is not producer:
                    task.result()
        return producer.result()

    async def _close_queue(self, queue: asyncio.Queue, consumers: int) -> None:
        for _ in range(consumers):
            await queue.put(_QUEUE_CLOSED)

    async def _cancel(self, *tasks: asyncio.Task) -> None:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _count_wordlist(self, wordlist_read: asyncio.Event) -> None:
        try:
            lines = await asyncio.to_thread(self.wordlist_manager.count_lines)
        except WordlistError as e:
            logger.warning(f"Unable to count wordlist lines, progress disabled: {e}")
            return
        # Added, not assigned, so retries counted in the meantime are kept
        self.counter.add_expected(lines * len(self.config.extensions))
        wordlist_read.set()

    async def _worker(self, worker_id: int, queue: asyncio.Queue) -> None:
        while True:
            descriptor = await queue.get()
            if descriptor is _QUEUE_CLOSED:
                logger.debug(f"Worker {worker_id} exiting")
                return
            await self._consume(descriptor)

    async def _consume(self, descriptor: RequestDescriptor) -> None:
        """
        Invoke ``descriptor``, retrying within this worker on failure.

        Retries are sequential and never requeued. After ``max_retries``
        retries the descriptor is dropped.
        """
        while True:
            retry = False
            try:
                result = await self.invoker.invoke(descriptor)
            except InvocationError as e:
                self._record_attempt()
                retry = self._schedule_retry(descriptor, e)
            else:
                self._record_attempt()
                await self._emit(result)

            await self._pause()
            if not retry:
                return

    def _record_attempt(self) -> None:
        self.stats.attempts += 1
        self.counter.record_attempt()

    def _schedule_retry(self, descriptor: RequestDescriptor, error: InvocationError) -> bool:
        if descriptor.retries < self.config.max_retries:
            descriptor.retries += 1
            self.counter.record_retry()
            logger.debug(
                f"Retrying payload '{descriptor.payload}' "
                f"({descriptor.retries}/{self.config.max_retries}): {error}"
            )
            return True

        self.stats.dropped += 1
        logger.error(f"Giving up request for payload '{descriptor.payload}'. Too many errors: {error}")
        return False

    async def _emit(self, result: FuzzResult) -> None:
        if self.hide_filter.is_visible(result):
            self.stats.results_emitted += 1
            await self.channels.results.put(result)
        else:
            self.stats.results_hidden += 1

    async def _pause(self) -> None:
        if self.config.sleep > 0:
            await asyncio.sleep(self.config.sleep)
