"""
Shared fixtures for Fuzz Hunter tests.
"""

from pathlib import Path
from typing import Callable, Iterable, List

import httpx
import pytest

from fuzz_hunter.core.config import FuzzConfig


@pytest.fixture
def make_wordlist(tmp_path) -> Callable[..., Path]:
    """Write a wordlist file and return its path."""

    def _make(lines: Iterable[str], name: str = "wordlist.txt") -> Path:
        path = tmp_path / name
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return path

    return _make


@pytest.fixture
def make_config(make_wordlist) -> Callable[..., FuzzConfig]:
    """Build a validated config with a fresh wordlist."""

    def _make(lines: Iterable[str] = ("admin",), **overrides) -> FuzzConfig:
        values = {
            "target_url": "http://target.local",
            "wordlist": make_wordlist(lines),
            "progress": False,
        }
        values.update(overrides)
        return FuzzConfig(**values)

    return _make


class RecordingTransport(httpx.MockTransport):
    """Mock transport remembering every request it served."""

    def __init__(self, handler):
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request):
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def ok_transport() -> RecordingTransport:
    """Answers every request with 200 and a small body."""
    return RecordingTransport(lambda request: httpx.Response(200, text="found it\n"))


@pytest.fixture
def recording_transport():
    """Factory for ``RecordingTransport`` around a custom handler."""
    return RecordingTransport
