"""
Progress model: advisory request counters and the periodic snapshot emitter.
"""

import asyncio
from dataclasses import dataclass

from ..core.logger import get_component_logger
from .models import Progress

logger = get_component_logger("progress")


@dataclass
class ProgressCounter:
    """
    Advisory counters for progress output.

    Workers bump these without any locking. They only feed a human readable
    approximation and never drive a correctness decision.
    """
    done_requests: int = 0
    approx_requests: int = 0

    def record_attempt(self) -> None:
        self.done_requests += 1

    def record_retry(self) -> None:
        # A retry means the run needs more requests than estimated
        self.approx_requests += 1

    def add_expected(self, count: int) -> None:
        self.approx_requests += count

    def snapshot(self) -> Progress:
        return Progress(self.done_requests, self.approx_requests)


class ProgressEmitter:
    """Emit a ``Progress`` snapshot every ``interval`` seconds."""

    def __init__(
            self,
            counter: ProgressCounter,
            channel: "asyncio.Queue[Progress]",
            interval: float,
            wordlist_read: asyncio.Event
    ):
        self.counter = counter
        self.channel = channel
        self.interval = interval
        self.wordlist_read = wordlist_read

    async def run(self) -> None:
        """Run until cancelled."""
        # The approximate total is meaningless until the wordlist was fully counted
        await self.wordlist_read.wait()
        logger.debug("Emitting progress every %.3fs", self.interval)

        while True:
            await asyncio.sleep(self.interval)
            await self.channel.put(self.counter.snapshot())
