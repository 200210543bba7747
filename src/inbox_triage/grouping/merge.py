"""Cross-thread semantic merging.

Threads that are structurally separate but about the same thing (similar
subject embeddings and at least one shared participant) are folded into one
group. User decisions override the computed suggestion: an accepted thread
merges unconditionally, a reverted thread is offered as related but never
consumed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

import structlog

from inbox_triage.models import (
    MergeState,
    ThreadGroupSeed,
    ThreadIntentMetadata,
    ThreadMergeReason,
    ThreadNode,
    ThreadRelatedConversation,
)

logger = structlog.get_logger()


class ThreadMergeEngine:
    def __init__(
        self,
        similarity_threshold: float = 0.82,
        participant_overlap_threshold: int = 1,
    ) -> None:
        self.similarity_threshold = similarity_threshold
        self.participant_overlap_threshold = participant_overlap_threshold

    def merge(
        self,
        nodes: Sequence[ThreadNode],
        metadata: Sequence[ThreadIntentMetadata],
        merge_overrides: Mapping[str, MergeState] | None = None,
        ignored_participants: Iterable[str] = (),
    ) -> list[ThreadGroupSeed]:
        """Group threads into seeds.

        Args:
            nodes: Thread roots, as produced by the thread builder.
            metadata: Intent metadata for (a subset of) those roots.
            merge_overrides: User merge decisions keyed by thread id.
            ignored_participants: Addresses excluded from overlap counting.

        Returns:
            One seed per group, accepted threads first, then metadata order.
        """

        if not nodes:
            return []
        overrides = merge_overrides or {}
        ignored = frozenset(a.lower() for a in ignored_participants)
        node_lookup = {node.thread_id: node for node in nodes}

        ordered = sorted(metadata, key=lambda m: overrides.get(m.thread_id) != MergeState.ACCEPTED)

        visited: set[str] = set()
        seeds: list[ThreadGroupSeed] = []
        for data in ordered:
            thread_id = data.thread_id
            if thread_id in visited:
                continue
            root = node_lookup.get(thread_id)
            if root is None:
                continue

            related: list[ThreadRelatedConversation] = []
            reasons: list[ThreadMergeReason] = []
            participants = data.participant_lookup - ignored

            for candidate in metadata:
                candidate_id = candidate.thread_id
                if candidate_id == thread_id or candidate_id in visited:
                    continue
                candidate_node = node_lookup.get(candidate_id)
                if candidate_node is None:
                    continue

                similarity = data.embedding.cosine_similarity(candidate.embedding)
                shared = participants & (candidate.participant_lookup - ignored)
                forced = (
                    overrides.get(thread_id) == MergeState.ACCEPTED
                    or overrides.get(candidate_id) == MergeState.ACCEPTED
                )
                if not forced and (
                    similarity < self.similarity_threshold
                    or len(shared) < self.participant_overlap_threshold
                ):
                    continue

                title = candidate.topic_tag or candidate_node.message.subject
                reason = ThreadMergeReason(
                    id=candidate_id,
                    description=f"Related conversation: {title}",
                    similarity=similarity,
                    shared_participants=tuple(sorted(shared)),
                )
                related.append(
                    ThreadRelatedConversation(
                        id=candidate_id,
                        title=title,
                        nodes=(candidate_node,),
                        reason=reason,
                    )
                )
                reasons.append(reason)
                if overrides.get(candidate_id) != MergeState.REVERTED:
                    visited.add(candidate_id)

            visited.add(thread_id)
            seeds.append(
                ThreadGroupSeed(
                    metadata=data,
                    root=root,
                    related=tuple(related),
                    merge_reasons=tuple(reasons),
                )
            )

        logger.debug(
            "thread_merge_completed",
            thread_count=len(metadata),
            group_count=len(seeds),
            merged=sum(len(s.related) for s in seeds),
        )
        return seeds
