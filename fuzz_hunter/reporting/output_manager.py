"""
Output manager: fans results out to the console and an optional file.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, TextIO

from ..fuzzing.fuzzer_engine import ResultChannels
from ..fuzzing.models import FuzzResult, Progress
from .console import ConsoleWriter
from .export_formats import ResultWriter, create_writer

logger = logging.getLogger(__name__)


class OutputManager:
    """
    Always writes to the console, and additionally to ``output_file`` in
    ``output_format`` when both are given.
    """

    def __init__(
            self,
            console_writer: ConsoleWriter,
            output_file: Optional[Path] = None,
            output_format: Optional[str] = None
    ):
        self.console_writer = console_writer
        self.output_file = output_file
        self.output_format = output_format
        self.results_written = 0
        self._stream: Optional[TextIO] = None
        self._file_writer: Optional[ResultWriter] = None

    def open(self) -> "OutputManager":
        if self.output_file is not None:
            self.output_file.parent.mkdir(parents=True, exist_ok=True)
            self._stream = open(self.output_file, "w", encoding="utf-8", newline="")
            logger.info(f"Writing {self.output_format} results to {self.output_file}")

        self._file_writer = create_writer(self.output_format, self._stream)
        self._file_writer.open()
        self.console_writer.open()
        return self

    def write(self, result: FuzzResult) -> None:
        self._file_writer.write(result)
        self.console_writer.write(result)
        self.results_written += 1

    def write_progress(self, progress: Progress) -> None:
        self._file_writer.write_progress(progress)
        self.console_writer.write_progress(progress)

    def close(self) -> None:
        self.console_writer.close()
        if self._file_writer is not None:
            self._file_writer.close()
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    async def consume(self, channels: ResultChannels) -> int:
        """
        Drain ``channels`` until the result stream is closed.

        Returns:
            Number of results written
        """
        progress_task = asyncio.create_task(self._consume_progress(channels))
        try:
            async for result in channels.iter_results():
                self.write(result)
        finally:
            progress_task.cancel()
            await asyncio.gather(progress_task, return_exceptions=True)
        return self.results_written

    async def _consume_progress(self, channels: ResultChannels) -> None:
        while True:
            progress = await channels.progress.get()
            self.write_progress(progress)
