"""
Keyword substitution engine.

The fuzz keyword may appear anywhere in a request template: method, URL path
or query, extension, any header name or value (including user agent and
cookie) and the body. Every occurrence is replaced per field; the rewritten
template is then validated so that a payload breaking the request framing is
reported as an error instead of being sent.
"""

import re
from dataclasses import dataclass, replace
from typing import Dict, Tuple

import httpx

from ..core.exceptions import SubstitutionError

# RFC 9110 token, used for methods and header field names
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")
_FORBIDDEN_VALUE_CHARS = ("\r", "\n", "\x00")
# Surrogate escapes carry wordlist bytes that were not valid UTF-8
_RAW_BYTE_RE = re.compile(r"[\udc80-\udcff]")


def to_wire(text: str) -> bytes:
    """Encode ``text`` restoring any raw bytes kept as surrogate escapes."""
    return text.encode("utf-8", errors="surrogateescape")


def escape_raw_bytes(text: str) -> str:
    """Percent-encode raw bytes so they reach the URL unchanged, e.g. ``%E9``."""
    return _RAW_BYTE_RE.sub(lambda match: f"%{ord(match.group()) - 0xDC00:02X}", text)


def canonical_header_case(keyword: str) -> str:
    """``FUZZ`` -> ``Fuzz``, the form a header name takes once canonicalized."""
    return keyword[:1].upper() + keyword[1:].lower()


@dataclass(frozen=True)
class RequestTemplate:
    """Fully constructed request before the payload is applied."""
    method: str
    url: str
    headers: Tuple[Tuple[str, str], ...] = ()
    body: str = ""
    extension: str = ""

    @property
    def target(self) -> str:
        """URL the request is sent to; the extension is appended last."""
        return escape_raw_bytes(self.url + self.extension)

    @property
    def header_map(self) -> Dict[str, str]:
        return dict(self.headers)


class KeywordSubstitutionEngine:
    """Replace the fuzz keyword in every field of a ``RequestTemplate``."""

    def __init__(self, keyword: str = "FUZZ"):
        if not keyword:
            raise ValueError("Fuzz keyword must not be empty")
        self.keyword = keyword
        self.header_keyword = canonical_header_case(keyword)

    def substitute(self, template: RequestTemplate, payload: str) -> RequestTemplate:
        """
        Return a new template with every keyword occurrence replaced by ``payload``.

        Method and header fields also match the canonical header case of the
        keyword; URL, extension and body match the keyword literally.

        Raises:
            SubstitutionError: the rewritten request is not well-formed.
        """
        substituted = replace(
            template,
            method=self._replace_with_header_case(template.method, payload),
            url=template.url.replace(self.keyword, payload),
            headers=tuple(
                (
                    self._replace_with_header_case(name, payload),
                    self._replace_with_header_case(value, payload),
                )
                for name, value in template.headers
            ),
            body=template.body.replace(self.keyword, payload),
            extension=template.extension.replace(self.keyword, payload),
        )
        self.validate(substituted, payload)
        return substituted

    def _replace_with_header_case(self, value: str, payload: str) -> str:
        value = value.replace(self.keyword, payload)
        if self.header_keyword != self.keyword:
            value = value.replace(self.header_keyword, payload)
        return value

    def validate(self, template: RequestTemplate, payload: str = "") -> None:
        if not _TOKEN_RE.match(template.method):
            raise SubstitutionError(f"Malformed HTTP method {template.method!r}", payload)

        for name, value in template.headers:
            if not _TOKEN_RE.match(name):
                raise SubstitutionError(f"Malformed header field name {name!r}", payload)
            if any(char in value for char in _FORBIDDEN_VALUE_CHARS):
                raise SubstitutionError(f"Malformed value for header {name!r}", payload)

        try:
            url = httpx.URL(template.target)
        except httpx.InvalidURL as exc:
            raise SubstitutionError(f"Malformed URL {template.target!r}: {exc}", payload) from exc
        if not url.host:
            raise SubstitutionError(f"Malformed URL {template.target!r}: missing host", payload)
