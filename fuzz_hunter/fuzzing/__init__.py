"""
Concurrent fuzzing engine for Fuzz Hunter.

This package provides:
- Wordlist streaming into request descriptors
- Keyword substitution across every field of a request template
- Request invocation with response metrics
- Hide filters and progress reporting
- The worker pool orchestrating all of the above
"""

from .fuzzer_engine import EngineState, FuzzerEngine, FuzzingStats, ResultChannels
from .keyword_engine import KeywordSubstitutionEngine, RequestTemplate
from .models import FuzzResult, Progress, RequestDescriptor
from .progress import ProgressCounter, ProgressEmitter
from .request_invoker import RequestInvoker
from .response_analyzer import ResponseAnalyzer
from .result_filter import HideFilter
from .wordlist_manager import WordlistManager

__all__ = [
    'EngineState',
    'FuzzerEngine',
    'FuzzingStats',
    'ResultChannels',
    'KeywordSubstitutionEngine',
    'RequestTemplate',
    'FuzzResult',
    'Progress',
    'RequestDescriptor',
    'ProgressCounter',
    'ProgressEmitter',
    'RequestInvoker',
    'ResponseAnalyzer',
    'HideFilter',
    'WordlistManager'
]
