"""Inbox triage agent implementation.

This module provides the agent that runs the whole pipeline for one set of
messages: thread building, intent analysis, cross-thread merging, group
assembly and ordering.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from datetime import timedelta

import structlog

from inbox_triage.config import Settings
from inbox_triage.grouping import ThreadMergeEngine, ThreadOrderingPipeline, assemble_groups
from inbox_triage.intent import ThreadIntentAnalyzer, ThreadIntentCache, ThreadSummarizer
from inbox_triage.models import EmailMessage, MergeState, ThreadGroup, ThreadingResult
from inbox_triage.threader import JWZThreader, apply_manual_overrides

logger = structlog.get_logger()


@dataclass(frozen=True)
class TriageResult:
    """Threads plus the ordered groups built from them."""

    threading: ThreadingResult
    groups: list[ThreadGroup]
    invalid_override_keys: list[str]


class TriageAgent:
    """Main inbox triage agent.

    The agent wires the pipeline components from settings. It holds no state
    between calls apart from the intent cache.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        summarizer: ThreadSummarizer | None = None,
        cache: ThreadIntentCache | None = None,
    ) -> None:
        """Initialize the triage agent.

        Args:
            settings: Application settings. If None, uses default settings.
            summarizer: Summarization capability. If None and summaries are
                enabled in settings, an Ollama summarizer is created.
            cache: Intent cache. If None, uses the process-wide cache.
        """
        from inbox_triage.config import get_settings

        self.settings = settings or get_settings()
        if summarizer is None and self.settings.summaries_enabled:
            from inbox_triage.ollama import OllamaClient, OllamaThreadSummarizer

            summarizer = OllamaThreadSummarizer(
                OllamaClient(self.settings),
                max_subjects=self.settings.summary_max_subjects,
            )

        self.threader = JWZThreader(
            subject_merge_window=timedelta(days=self.settings.subject_merge_window_days),
            subject_merge_min_jaccard=self.settings.subject_merge_min_jaccard,
        )
        self.analyzer = ThreadIntentAnalyzer(
            summarizer=summarizer,
            cache=cache,
            vip_senders=self.settings.vip_senders,
        )
        self.merge_engine = ThreadMergeEngine(
            similarity_threshold=self.settings.similarity_threshold,
            participant_overlap_threshold=self.settings.participant_overlap_threshold,
        )
        self.ordering = ThreadOrderingPipeline()
        logger.info("triage_agent_initialized", summaries=summarizer is not None)

    def build_threads(
        self,
        messages: Iterable[EmailMessage],
        manual_overrides: Mapping[str, str] | None = None,
    ) -> tuple[ThreadingResult, list[str]]:
        """Build threads and apply manual thread overrides.

        Returns:
            The threading result and the override keys that were invalid.
        """
        result = self.threader.build_threads(messages)
        if not manual_overrides:
            return result, []
        application = apply_manual_overrides(dict(manual_overrides), result)
        if application.invalid_keys:
            logger.warning("manual_overrides_invalid", keys=application.invalid_keys)
        return application.result, application.invalid_keys

    async def triage(
        self,
        messages: Iterable[EmailMessage],
        merge_overrides: Mapping[str, MergeState] | None = None,
        pins: Collection[str] = (),
        manual_overrides: Mapping[str, str] | None = None,
    ) -> TriageResult:
        """Run the full pipeline.

        Args:
            messages: Parsed messages in any order.
            merge_overrides: User merge decisions keyed by thread id.
            pins: Pinned group ids.
            manual_overrides: Message key to thread id reassignments.

        Returns:
            TriageResult: Threads and the ordered display groups.
        """
        threading_result, invalid_keys = self.build_threads(messages, manual_overrides)
        decisions = dict(merge_overrides or {})

        metadata = await self.analyzer.analyze(threading_result.roots)
        seeds = self.merge_engine.merge(
            threading_result.roots,
            metadata,
            merge_overrides=decisions,
            ignored_participants=self.settings.ignored_participants,
        )
        groups = assemble_groups(seeds, decisions=decisions, pins=pins)
        ordered = self.ordering.order(groups, pins=pins)

        logger.info(
            "triage_completed",
            thread_count=len(threading_result.threads),
            group_count=len(ordered),
            unread_total=sum(g.unread_count for g in ordered),
        )
        return TriageResult(
            threading=threading_result,
            groups=ordered,
            invalid_override_keys=invalid_keys,
        )
