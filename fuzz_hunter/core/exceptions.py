"""
Exception hierarchy for Fuzz Hunter.

Setup errors (``ConfigurationError``, ``WordlistError``) abort a run before the
pipeline starts. Per-request errors (``InvocationError`` and its subclasses)
are recovered by the worker retry loop and never abort a run.
"""


class FuzzHunterError(Exception):
    """Base class for all Fuzz Hunter errors."""


class ConfigurationError(FuzzHunterError):
    """Raised when run parameters fail validation."""


class WordlistError(FuzzHunterError):
    """Raised when the wordlist cannot be opened or read."""


class InvocationError(FuzzHunterError):
    """Raised when a single fuzz request could not be completed."""

    def __init__(self, message: str, payload: str = ""):
        super().__init__(message)
        self.payload = payload


class SubstitutionError(InvocationError):
    """Raised when keyword substitution produces a malformed request."""
