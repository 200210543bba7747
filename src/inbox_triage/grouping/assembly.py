"""Turn merge-engine seeds into displayable thread groups."""

from __future__ import annotations

from collections.abc import Collection, Mapping, Sequence

from inbox_triage.models import MergeState, ThreadGroup, ThreadGroupSeed, ThreadRelatedConversation

NO_SUBJECT = "No Subject"


def assemble_groups(
    seeds: Sequence[ThreadGroupSeed],
    decisions: Mapping[str, MergeState] | None = None,
    pins: Collection[str] = (),
) -> list[ThreadGroup]:
    """Build one group per seed, splitting seeds whose merge was reverted.

    A reverted seed yields its root alone plus one standalone group per
    related conversation, so the user still sees every thread.
    """

    decisions = decisions or {}
    groups: list[ThreadGroup] = []
    for seed in seeds:
        state = MergeState(decisions.get(seed.metadata.thread_id, MergeState.SUGGESTED))
        if state is MergeState.REVERTED:
            groups.append(_group(seed, (), state, pins))
            groups.extend(_standalone(seed, conversation, pins) for conversation in seed.related)
            continue
        groups.append(_group(seed, seed.related, state, pins))
    return groups


def _group(
    seed: ThreadGroupSeed,
    related: Sequence[ThreadRelatedConversation],
    state: MergeState,
    pins: Collection[str],
) -> ThreadGroup:
    metadata = seed.metadata
    topic_tag = metadata.topic_tag or (related[0].title if related else None)
    return ThreadGroup(
        id=metadata.thread_id,
        subject=seed.root.message.subject or NO_SUBJECT,
        topic_tag=topic_tag,
        summary=metadata.summary,
        participants=metadata.participants,
        badges=metadata.badges,
        intent_signals=metadata.intent_signals,
        last_updated=metadata.last_updated,
        unread_count=metadata.unread_count,
        root_nodes=(seed.root,),
        related_conversations=tuple(related),
        merge_reasons=seed.merge_reasons,
        merge_state=state,
        is_waiting_on_me=metadata.is_waiting_on_me,
        has_active_task=metadata.has_active_task,
        pinned=metadata.thread_id in pins,
        chronological_index=metadata.chronological_index,
    )


def _standalone(
    seed: ThreadGroupSeed, conversation: ThreadRelatedConversation, pins: Collection[str]
) -> ThreadGroup:
    metadata = seed.metadata
    node = conversation.nodes[0]
    return ThreadGroup(
        id=node.thread_id,
        subject=node.message.subject or conversation.title,
        topic_tag=conversation.title,
        summary=f"{conversation.title} • {conversation.reason.description}",
        participants=metadata.participants,
        badges=metadata.badges,
        intent_signals=metadata.intent_signals,
        last_updated=node.message.date,
        unread_count=node.unread_count(),
        root_nodes=(node,),
        merge_reasons=(conversation.reason,),
        merge_state=MergeState.REVERTED,
        is_waiting_on_me=metadata.is_waiting_on_me,
        has_active_task=metadata.has_active_task,
        pinned=node.thread_id in pins,
        chronological_index=metadata.chronological_index,
    )
