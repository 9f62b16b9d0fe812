"""
Configuration management for Fuzz Hunter using Pydantic settings.

Two layers are kept apart:

* ``FuzzHunterSettings`` holds process-wide defaults that may come from the
  environment (``FUZZ_HUNTER_*``) or a ``.env`` file.
* ``FuzzConfig`` holds the immutable parameters of a single run. It is
  validated once at construction; every derived value is computed from it
  and never mutated while workers are running.
"""

import re
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

HTTP_NOT_FOUND = 404
VALUE_SEPARATOR = ","
HEADER_FIELD_SEPARATOR = ","

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
# A period followed by letters or digits, e.g. ".php" or ".FUZZ"
_EXTENSION_RE = re.compile(r"^\.[^\W_]+$")


class FuzzHunterSettings(BaseSettings):
    """Process-wide defaults for Fuzz Hunter."""

    app_name: str = "Fuzz Hunter"
    version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    concurrency: int = Field(default=8, description="Number of parallel workers")
    timeout_ms: int = Field(default=10000, description="HTTP timeout in milliseconds")
    sleep_ms: int = Field(default=0, description="Pause per worker after every attempt")
    progress_interval_ms: int = Field(default=75, description="Progress snapshot interval")
    fuzz_keyword: str = Field(default="FUZZ", description="Sentinel replaced by payloads")
    max_retries: int = Field(default=3, description="Retries per request before giving up")
    user_agent: str = Field(default="", description="Empty keeps the transport default")
    verify_ssl: bool = False

    model_config = SettingsConfigDict(
        env_prefix="FUZZ_HUNTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()


def normalize_url(url: str) -> str:
    """Normalize ``example.com:80/`` to ``http://example.com:80``."""
    url = url.strip()
    if not _SCHEME_RE.match(url):
        url = "http://" + url

    # Like browsers, drop a single trailing slash
    if url.endswith("/"):
        url = url[:-1]

    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise ValueError(f"Unable to parse URL/hostname: {url}. {exc}") from exc
    if not parsed.host:
        raise ValueError(f"Unable to parse URL/hostname: {url}. Missing host")
    return url


def split_header_fields(raw: str, sep: str = HEADER_FIELD_SEPARATOR) -> Dict[str, str]:
    """Split ``Name:Value,Name2:Value2`` into a header mapping."""
    header: Dict[str, str] = {}
    if not raw:
        return header

    for field in raw.split(sep):
        name, colon, value = field.partition(":")
        if not colon:
            raise ValueError(
                f"Malformed header field '{field}'. Missing separator colon ':', like name:value"
            )
        header[name.strip()] = value.strip()
    return header


def split_int_set(raw: Any, sep: str = VALUE_SEPARATOR) -> FrozenSet[int]:
    """Turn ``"404,500"`` or an iterable of ints into a frozenset; junk tokens are skipped."""
    if raw is None or raw == "":
        return frozenset()
    tokens: Iterable[Any] = raw.split(sep) if isinstance(raw, str) else raw

    values = set()
    for token in tokens:
        try:
            values.add(int(str(token).strip()))
        except ValueError:
            continue
    return frozenset(values)


class FuzzConfig(BaseModel):
    """Immutable parameters of a fuzzing run."""

    model_config = ConfigDict(frozen=True)

    target_url: str
    wordlist: Path
    method: str = "GET"
    extensions: Tuple[str, ...] = ("",)
    headers: Tuple[Tuple[str, str], ...] = ()
    user_agent: str = ""
    cookie: str = ""
    body: str = ""

    timeout_ms: int = Field(default=10000, gt=0)
    sleep_ms: int = Field(default=0, ge=0)
    concurrency: int = Field(default=8, ge=1, le=100)
    max_retries: int = Field(default=3, ge=0)
    fuzz_keyword: str = Field(default="FUZZ", min_length=1)
    progress_interval_ms: int = Field(default=75, gt=0)

    follow_redirects: bool = False
    verify_ssl: bool = False
    show_404: bool = False
    progress: bool = True

    hide_status_codes: FrozenSet[int] = frozenset()
    hide_content_lengths: FrozenSet[int] = frozenset()
    hide_word_counts: FrozenSet[int] = frozenset()
    hide_line_counts: FrozenSet[int] = frozenset()
    hide_header_sizes: FrozenSet[int] = frozenset()

    @field_validator("target_url", mode="before")
    @classmethod
    def validate_target_url(cls, v):
        if not v or not str(v).strip():
            raise ValueError("No URL/hostname provided")
        return normalize_url(str(v))

    @field_validator("wordlist", mode="before")
    @classmethod
    def validate_wordlist(cls, v):
        if v is None or not str(v).strip():
            raise ValueError("No wordlist provided")
        path = Path(v)
        if not path.is_file():
            raise ValueError(f"Wordlist not found at '{path}'")
        return path

    @field_validator("method", mode="before")
    @classmethod
    def validate_method(cls, v):
        method = str(v or "").strip().upper()
        if not method:
            raise ValueError("HTTP method must not be empty")
        return method

    @field_validator("extensions", mode="before")
    @classmethod
    def validate_extensions(cls, v):
        if not v:
            # With an empty extension every wordlist line is requested once
            return ("",)
        raw = v.split(VALUE_SEPARATOR) if isinstance(v, str) else list(v)
        for ext in raw:
            # An empty entry requests the bare payload
            if ext and not _EXTENSION_RE.match(ext):
                raise ValueError(
                    f"Invalid extension {ext!r}. Extensions must contain a period "
                    f"followed by alphanumeric letters. Example: .php,.html"
                )
        return tuple(raw)

    @field_validator("headers", mode="before")
    @classmethod
    def validate_headers(cls, v):
        if not v:
            return ()
        if isinstance(v, str):
            mapping = split_header_fields(v)
        elif isinstance(v, dict):
            mapping = {str(k).strip(): str(val).strip() for k, val in v.items()}
        else:
            mapping = {str(k).strip(): str(val).strip() for k, val in v}
        if any(not name for name in mapping):
            raise ValueError("Header field names must not be empty")
        return tuple(mapping.items())

    @field_validator(
        "hide_status_codes",
        "hide_content_lengths",
        "hide_word_counts",
        "hide_line_counts",
        "hide_header_sizes",
        mode="before"
    )
    @classmethod
    def validate_hide_set(cls, v):
        return split_int_set(v)

    @classmethod
    def build(cls, **values) -> "FuzzConfig":
        """Validate ``values`` and raise ``ConfigurationError`` on failure."""
        try:
            return cls(**values)
        except ValidationError as exc:
            messages = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or 'config'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ConfigurationError(messages) from exc

    @classmethod
    def from_options(cls, settings: Optional[FuzzHunterSettings] = None, **options) -> "FuzzConfig":
        """
        Build a config from raw CLI values.

        Options that are ``None`` fall back to ``settings`` (environment defaults).
        """
        settings = settings or get_settings()
        defaults = {
            "concurrency": settings.concurrency,
            "timeout_ms": settings.timeout_ms,
            "sleep_ms": settings.sleep_ms,
            "progress_interval_ms": settings.progress_interval_ms,
            "fuzz_keyword": settings.fuzz_keyword,
            "max_retries": settings.max_retries,
            "user_agent": settings.user_agent,
            "verify_ssl": settings.verify_ssl,
        }
        values = {key: value for key, value in options.items() if value is not None}
        for key, value in defaults.items():
            values.setdefault(key, value)
        return cls.build(**values)

    @property
    def timeout(self) -> float:
        """Timeout in seconds."""
        return self.timeout_ms / 1000

    @property
    def sleep(self) -> float:
        """Per-attempt sleep in seconds."""
        return self.sleep_ms / 1000

    @property
    def progress_interval(self) -> float:
        return self.progress_interval_ms / 1000

    @property
    def header_map(self) -> Dict[str, str]:
        return dict(self.headers)

    @cached_property
    def effective_hide_status_codes(self) -> FrozenSet[int]:
        """Status codes to hide, including 404 unless explicitly shown."""
        if self.show_404:
            return self.hide_status_codes
        return self.hide_status_codes | {HTTP_NOT_FOUND}

    @cached_property
    def fuzz_keyword_present(self) -> bool:
        """Whether the keyword appears in any part of the request template."""
        keyword = self.fuzz_keyword
        parts = urlsplit(self.target_url)
        header_string = HEADER_FIELD_SEPARATOR.join(f"{k}:{v}" for k, v in self.headers)
        return any(
            keyword in field
            for field in (
                parts.path,
                parts.query,
                header_string,
                self.body,
                self.method,
                VALUE_SEPARATOR.join(self.extensions),
                self.user_agent,
                self.cookie,
            )
        )


# Global settings instance
settings = FuzzHunterSettings()


def get_settings() -> FuzzHunterSettings:
    """Get the global settings instance."""
    return settings
