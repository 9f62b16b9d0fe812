"""
Response analyzer computing the metrics used for result filtering.
"""

import re
from typing import Iterable, Tuple, Union

import httpx

from .models import FuzzResult

# Maximal runs of Unicode letters; digits, underscore and punctuation end a word
_WORD_RE = re.compile(r"[^\W\d_]+")

UNKNOWN_LENGTH = -1


def count_words(body: Union[bytes, str]) -> int:
    """Count maximal runs of letter characters."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    return len(_WORD_RE.findall(body))


def count_lines(body: bytes) -> int:
    """Count line-feed bytes."""
    return body.count(b"\n")


def header_size(headers: Union[httpx.Headers, Iterable[Tuple[bytes, bytes]]]) -> int:
    """Sum of the byte lengths of every header field name and value."""
    raw = headers.raw if isinstance(headers, httpx.Headers) else headers
    return sum(len(name) + len(value) for name, value in raw)


def declared_content_length(headers: httpx.Headers) -> int:
    """Content length announced by the server, or ``UNKNOWN_LENGTH``."""
    value = headers.get("content-length")
    if value is None:
        return UNKNOWN_LENGTH
    try:
        return int(value)
    except ValueError:
        return UNKNOWN_LENGTH


def is_content_encoded(headers: httpx.Headers) -> bool:
    """Whether the body was compressed on the wire and decoded on read."""
    encoding = headers.get("content-encoding", "").strip().lower()
    return encoding not in ("", "identity")


class ResponseAnalyzer:
    """Turn a drained response into a ``FuzzResult``."""

    def analyze(self, response: httpx.Response, body: bytes, payload: str) -> FuzzResult:
        content_length = declared_content_length(response.headers)
        # The declared length of an encoded body counts compressed bytes, while
        # ``body`` is already decoded. Unknown length is common on 30x and 40x.
        if content_length == UNKNOWN_LENGTH or is_content_encoded(response.headers):
            content_length = len(body)

        return FuzzResult(
            content_length=content_length,
            word_count=count_words(body),
            line_count=count_lines(body),
            header_size=header_size(response.headers),
            status_code=response.status_code,
            payload=payload,
        )
