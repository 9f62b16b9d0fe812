"""
Fuzz Hunter - Concurrent HTTP content discovery

A wordlist driven brute forcer that substitutes every wordlist entry into a
request template (path, query, header, method, body or file extension) and
filters the responses by their metrics.
"""

__version__ = "1.0.0"
__author__ = "Fuzz Hunter Team"
__license__ = "MIT"

from fuzz_hunter.core.config import FuzzConfig
from fuzz_hunter.core.logger import get_logger

# Core exports
__all__ = [
    "FuzzConfig",
    "get_logger",
    "__version__",
]
