"""In-memory cache of per-thread intent annotations.

The cache only spares repeated summarizer calls; it is never required for
correctness. Every read and write happens under one lock so concurrent
enrichment tasks (or threads) can share an instance; concurrent writers for
the same thread id simply leave the last record written.
"""

from __future__ import annotations

import threading
from datetime import datetime
from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from inbox_triage.models import ThreadBadge, ThreadIntentSignals


class IntentCacheRecord(BaseModel):
    """Cached annotation for one thread."""

    model_config = ConfigDict(frozen=True)

    thread_id: str
    summary: str
    topic_tag: str | None = None
    intent_signals: ThreadIntentSignals
    badges: tuple[ThreadBadge, ...] = ()
    last_updated: datetime


class ThreadIntentCache:
    def __init__(self) -> None:
        self._records: dict[str, IntentCacheRecord] = {}
        self._lock = threading.Lock()

    def record(self, thread_id: str) -> IntentCacheRecord | None:
        with self._lock:
            return self._records.get(thread_id)

    def upsert(self, record: IntentCacheRecord) -> None:
        with self._lock:
            self._records[record.thread_id] = record

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


@lru_cache
def get_intent_cache() -> ThreadIntentCache:
    """Get the process-wide intent cache."""
    return ThreadIntentCache()
