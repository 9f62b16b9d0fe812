"""
Data types flowing through the fuzzing pipeline.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass
class RequestDescriptor:
    """
    One unit of work: the request template plus one payload and one extension.

    ``retries`` is owned by the worker processing the descriptor and is never
    shared with another worker.
    """
    method: str
    url: str
    headers: Dict[str, str]
    body: str
    extension: str
    payload: str
    retries: int = 0


@dataclass(frozen=True)
class FuzzResult:
    """Metrics of one successful response."""
    content_length: int
    word_count: int
    line_count: int
    header_size: int
    status_code: int
    payload: str

    @property
    def display_payload(self) -> str:
        """Payload with raw wordlist bytes shown as ``\\xNN``."""
        raw = self.payload.encode("utf-8", errors="surrogateescape")
        return raw.decode("utf-8", errors="backslashreplace")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["payload"] = self.display_payload
        return data


@dataclass(frozen=True)
class Progress:
    """Snapshot of the advisory progress counters."""
    done_requests: int
    approx_requests: int

    @property
    def percent(self) -> int:
        if self.approx_requests <= 0:
            return 0
        return int(self.done_requests / self.approx_requests * 100)
