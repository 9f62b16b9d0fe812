"""
Export formats for fuzzing results.
"""

import csv
import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, TextIO, Type

from ..fuzzing.models import FuzzResult, Progress

logger = logging.getLogger(__name__)

COLUMNS = ["Content-Length", "Words", "Lines", "Header", "Status-Code", "Payload"]


def result_row(result: FuzzResult) -> List[str]:
    return [
        str(result.content_length),
        str(result.word_count),
        str(result.line_count),
        str(result.header_size),
        str(result.status_code),
        result.display_payload,
    ]


class ResultWriter(ABC):
    """Base class for every output a run can be written to."""

    def open(self) -> None:
        """Write any preamble."""

    @abstractmethod
    def write(self, result: FuzzResult) -> None:
        """Write a single result."""

    def write_progress(self, progress: Progress) -> None:
        """Most outputs ignore progress snapshots."""

    def close(self) -> None:
        """Flush buffered output."""


class NullWriter(ResultWriter):
    """Discards everything."""

    def write(self, result: FuzzResult) -> None:
        pass


class CsvWriter(ResultWriter):
    """Semicolon separated values with a header row."""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self._writer = csv.writer(stream, delimiter=";", lineterminator="\n")

    def open(self) -> None:
        self._writer.writerow(COLUMNS)

    def write(self, result: FuzzResult) -> None:
        self._writer.writerow(result_row(result))


class TxtWriter(ResultWriter):
    """Tab separated plain text with a header row."""

    def __init__(self, stream: TextIO):
        self.stream = stream

    def open(self) -> None:
        self.stream.write("\t".join(COLUMNS) + "\n")

    def write(self, result: FuzzResult) -> None:
        self.stream.write("\t".join(result_row(result)) + "\n")


class JsonWriter(ResultWriter):
    """Buffers results and writes a single JSON array on close."""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self.results: List[Dict] = []

    def write(self, result: FuzzResult) -> None:
        self.results.append(result.to_dict())

    def close(self) -> None:
        json.dump(self.results, self.stream, indent=2)
        self.stream.write("\n")
        logger.debug(f"Wrote {len(self.results)} results as JSON")


SUPPORTED_FORMATS: Dict[str, Type[ResultWriter]] = {
    "csv": CsvWriter,
    "txt": TxtWriter,
    "json": JsonWriter,
}


def create_writer(output_format: Optional[str], stream: Optional[TextIO]) -> ResultWriter:
    """
    Create the file writer for ``output_format``.

    Without a format or a stream, a ``NullWriter`` is returned.
    """
    if not output_format or stream is None:
        return NullWriter()

    writer_class = SUPPORTED_FORMATS.get(output_format.lower())
    if writer_class is None:
        raise ValueError(
            f"Only the following output formats are supported: {', '.join(sorted(SUPPORTED_FORMATS))}"
        )
    return writer_class(stream)
