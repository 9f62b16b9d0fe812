"""
Wordlist manager: streams wordlist entries into request descriptors.
"""

import asyncio
import logging
from typing import Iterator, TextIO

from ..core.config import FuzzConfig
from ..core.exceptions import WordlistError
from .models import RequestDescriptor

logger = logging.getLogger(__name__)


def strip_line_ending(line: str) -> str:
    """Drop a trailing ``\\n`` and then at most one ``\\r``."""
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


class WordlistManager:
    """Read a wordlist and expand every entry against the extension list."""

    def __init__(self, config: FuzzConfig):
        self.config = config

    def open(self) -> TextIO:
        """
        Open the wordlist for reading.

        Raises:
            WordlistError: the file cannot be opened.
        """
        try:
            # Undecodable bytes survive as surrogate escapes and go out unchanged;
            # only "\n" ends an entry
            return open(
                self.config.wordlist, "r", encoding="utf-8", errors="surrogateescape", newline="\n"
            )
        except OSError as e:
            raise WordlistError(f"Unable to open wordlist '{self.config.wordlist}': {e}") from e

    def count_lines(self) -> int:
        """Count wordlist entries; runs off the event loop for large files."""
        with self.open() as handle:
            return sum(1 for _ in handle)

    def iter_descriptors(self, handle: TextIO) -> Iterator[RequestDescriptor]:
        """
        Yield one descriptor per (line, extension) pair.

        Lines keep their file order for a fixed extension.
        """
        config = self.config
        headers = config.header_map

        for line in handle:
            payload = strip_line_ending(line)
            for extension in config.extensions:
                yield RequestDescriptor(
                    method=config.method,
                    url=config.target_url,
                    headers=headers,
                    body=config.body,
                    extension=extension,
                    payload=payload,
                )

    async def produce(
            self,
            handle: TextIO,
            queue: "asyncio.Queue[RequestDescriptor]",
            done: asyncio.Event
    ) -> int:
        """
        Feed descriptors into ``queue`` and set ``done`` once the wordlist is exhausted.

        Blocks whenever the queue is full. The handle is closed on exit.

        Returns:
            Number of descriptors produced
        """
        produced = 0
        try:
            for descriptor in self.iter_descriptors(handle):
                await queue.put(descriptor)
                produced += 1
        except OSError as e:
            raise WordlistError(f"Failed reading wordlist '{self.config.wordlist}': {e}") from e
        finally:
            handle.close()

        logger.debug(f"Producer finished after {produced} descriptors")
        done.set()
        return produced
