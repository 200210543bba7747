"""Per-thread intent enrichment.

Each thread root is enriched in its own task: heuristic signals, badges,
participants, a topic tag, a subject embedding and a short summary. The
summary comes from the intent cache when present, otherwise from an optional
summarizer, otherwise from the first subject.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timezone
from email.utils import getaddresses
from typing import Protocol

import structlog

from inbox_triage.intent import heuristics
from inbox_triage.intent.cache import IntentCacheRecord, ThreadIntentCache, get_intent_cache
from inbox_triage.models import (
    EmailMessage,
    IntentEmbedding,
    ParticipantRole,
    ThreadIntentMetadata,
    ThreadIntentSignals,
    ThreadNode,
    ThreadParticipant,
)

logger = structlog.get_logger()

FALLBACK_SUMMARY = "Conversation"


class ThreadSummarizer(Protocol):
    """Capability that turns a thread's subjects into a short description."""

    async def summarize_thread(self, subjects: list[str]) -> str: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _addresses(header: str) -> list[tuple[str, str]]:
    if not header or not header.strip():
        return []
    result = []
    for name, addr in getaddresses([header]):
        # Unparseable fragments come back without an address; keep the raw text.
        address = addr or name
        if address.strip():
            result.append((name if addr else "", address))
    return result


def thread_subjects(node: ThreadNode) -> list[str]:
    """Non-empty trimmed subjects of a node and its descendants, depth first."""
    return [s for s in (m.subject.strip() for m in node.iter_messages()) if s]


class ThreadIntentAnalyzer:
    """Compute ThreadIntentMetadata for thread roots concurrently.

    Args:
        summarizer: Optional summarization capability. Its failures are
            logged and replaced by the first subject.
        cache: Intent cache. Defaults to the process-wide instance.
        vip_senders: Lowercased addresses that mark a participant as VIP.
        clock: Returns the current time; used for timeliness scoring.
    """

    def __init__(
        self,
        summarizer: ThreadSummarizer | None = None,
        cache: ThreadIntentCache | None = None,
        vip_senders: Iterable[str] = (),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.summarizer = summarizer
        self.cache = cache if cache is not None else get_intent_cache()
        self.vip_senders = frozenset(v.strip().lower() for v in vip_senders)
        self._clock = clock

    async def analyze(self, nodes: Sequence[ThreadNode]) -> list[ThreadIntentMetadata]:
        """Enrich every node; nodes whose enrichment fails are left out.

        Cancelling this coroutine cancels all outstanding enrichment tasks
        and returns nothing.
        """

        results = await asyncio.gather(
            *(self._enrich(node, index) for index, node in enumerate(nodes)),
            return_exceptions=True,
        )

        metadata: list[ThreadIntentMetadata] = []
        for node, result in zip(nodes, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "thread_enrichment_failed",
                    thread_id=node.thread_id,
                    error=repr(result),
                )
                continue
            metadata.append(result)

        logger.info(
            "intent_analysis_completed",
            node_count=len(nodes),
            enriched=len(metadata),
            dropped=len(nodes) - len(metadata),
        )
        return metadata

    async def _enrich(self, node: ThreadNode, chronological_index: int) -> ThreadIntentMetadata:
        thread_id = node.thread_id
        root = node.message
        text = heuristics.message_text(root)
        subjects = thread_subjects(node)

        participants = self.participants(root)
        urgency = heuristics.urgency_score(text)
        waiting = heuristics.is_waiting_on_me(text)
        active_task = heuristics.has_active_task(text)
        signals = ThreadIntentSignals(
            intent_relevance=heuristics.intent_relevance(text),
            urgency_score=urgency,
            personal_priority_score=heuristics.personal_priority_score(participants),
            timeliness_score=heuristics.timeliness_score(root.date, self._clock()),
        )
        badges = heuristics.badges(
            urgency=urgency,
            waiting_on_me=waiting,
            active_task=active_task,
            participants=participants,
        )
        topic_tag = heuristics.topic_tag(root.subject)
        last_updated = node.last_updated()

        summary, reusable = await self._summary(thread_id, subjects)
        if reusable:
            self.cache.upsert(
                IntentCacheRecord(
                    thread_id=thread_id,
                    summary=summary,
                    topic_tag=topic_tag,
                    intent_signals=signals,
                    badges=tuple(badges),
                    last_updated=last_updated,
                )
            )

        return ThreadIntentMetadata(
            thread_id=thread_id,
            summary=summary,
            topic_tag=topic_tag,
            participants=tuple(participants),
            badges=tuple(badges),
            intent_signals=signals,
            is_waiting_on_me=waiting,
            has_active_task=active_task,
            embedding=IntentEmbedding.make(" ".join(subjects)),
            participant_lookup=frozenset(p.id for p in participants),
            last_updated=last_updated,
            unread_count=node.unread_count(),
            chronological_index=chronological_index,
        )

    async def _summary(self, thread_id: str, subjects: list[str]) -> tuple[str, bool]:
        """Return the summary text and whether it is worth caching."""

        cached = self.cache.record(thread_id)
        if cached is not None:
            return cached.summary, True

        fallback = subjects[0] if subjects else FALLBACK_SUMMARY
        if self.summarizer is None or not subjects:
            return fallback, False

        try:
            summary = await self.summarizer.summarize_thread(subjects)
        except Exception as exc:  # noqa: BLE001
            logger.warning("thread_summary_failed", thread_id=thread_id, error=str(exc))
            return fallback, False

        summary = (summary or "").strip()
        if not summary:
            return fallback, False
        return summary, True

    def participants(self, message: EmailMessage) -> list[ThreadParticipant]:
        """Sender (requester) and To recipients (collaborators), unique by email."""

        candidates = [
            ThreadParticipant.inferred(name, addr, ParticipantRole.REQUESTER, self.vip_senders)
            for name, addr in _addresses(message.sender)
        ]
        candidates.extend(
            ThreadParticipant.inferred(name, addr, ParticipantRole.COLLABORATOR, self.vip_senders)
            for name, addr in _addresses(message.to)
        )

        seen: set[str] = set()
        unique: list[ThreadParticipant] = []
        for participant in candidates:
            if participant.id in seen:
                continue
            seen.add(participant.id)
            unique.append(participant)
        return unique
