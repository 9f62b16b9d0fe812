"""
Hide filters deciding which results reach the output.
"""

from dataclasses import dataclass
from typing import FrozenSet

from ..core.config import FuzzConfig
from .models import FuzzResult


@dataclass(frozen=True)
class HideFilter:
    """Five independent hide-sets; membership in any of them hides a result."""
    status_codes: FrozenSet[int] = frozenset()
    content_lengths: FrozenSet[int] = frozenset()
    word_counts: FrozenSet[int] = frozenset()
    line_counts: FrozenSet[int] = frozenset()
    header_sizes: FrozenSet[int] = frozenset()

    @classmethod
    def from_config(cls, config: FuzzConfig) -> "HideFilter":
        return cls(
            status_codes=config.effective_hide_status_codes,
            content_lengths=config.hide_content_lengths,
            word_counts=config.hide_word_counts,
            line_counts=config.hide_line_counts,
            header_sizes=config.hide_header_sizes,
        )

    def is_visible(self, result: FuzzResult) -> bool:
        return (
            result.status_code not in self.status_codes
            and result.content_length not in self.content_lengths
            and result.word_count not in self.word_counts
            and result.line_count not in self.line_counts
            and result.header_size not in self.header_sizes
        )
