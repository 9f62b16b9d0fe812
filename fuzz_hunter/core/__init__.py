"""
Core functionality for Fuzz Hunter
"""

from .config import FuzzConfig, FuzzHunterSettings, get_settings
from .exceptions import (
    ConfigurationError,
    FuzzHunterError,
    InvocationError,
    SubstitutionError,
    WordlistError,
)
from .logger import get_logger

__all__ = [
    "FuzzConfig",
    "FuzzHunterSettings",
    "get_settings",
    "get_logger",
    "FuzzHunterError",
    "ConfigurationError",
    "WordlistError",
    "InvocationError",
    "SubstitutionError",
]
