"""Thread intent analysis.

Heuristic signals, participants, embeddings and summaries for each thread.
"""

from .analyzer import ThreadIntentAnalyzer, ThreadSummarizer
from .cache import IntentCacheRecord, ThreadIntentCache, get_intent_cache

__all__ = [
    "IntentCacheRecord",
    "ThreadIntentAnalyzer",
    "ThreadIntentCache",
    "ThreadSummarizer",
    "get_intent_cache",
]
