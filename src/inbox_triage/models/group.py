"""Cross-thread grouping models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from inbox_triage.models.intent import (
    ThreadBadge,
    ThreadIntentMetadata,
    ThreadIntentSignals,
    ThreadParticipant,
)
from inbox_triage.models.message import ThreadNode


class MergeState(str, Enum):
    """User decision about a suggested cross-thread merge."""

    SUGGESTED = "suggested"
    ACCEPTED = "accepted"
    REVERTED = "reverted"


class ThreadMergeReason(BaseModel):
    """Why a related conversation was attached to a group."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Thread id of the related conversation")
    description: str
    similarity: float
    shared_participants: tuple[str, ...] = ()


class ThreadRelatedConversation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    nodes: tuple[ThreadNode, ...] = ()
    reason: ThreadMergeReason


class ThreadGroupSeed(BaseModel):
    """A root thread and the conversations the merge engine attached to it."""

    model_config = ConfigDict(frozen=True)

    metadata: ThreadIntentMetadata
    root: ThreadNode
    related: tuple[ThreadRelatedConversation, ...] = ()
    merge_reasons: tuple[ThreadMergeReason, ...] = ()


class ThreadGroup(BaseModel):
    """A displayable conversation group.

    Equality and hashing use ``(id, chronological_index)`` only, so two
    snapshots of the same conversation taken at different positions compare
    unequal.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    subject: str
    topic_tag: str | None = None
    summary: str = ""
    participants: tuple[ThreadParticipant, ...] = ()
    badges: tuple[ThreadBadge, ...] = ()
    intent_signals: ThreadIntentSignals
    last_updated: datetime
    unread_count: int = Field(default=0, ge=0)
    root_nodes: tuple[ThreadNode, ...] = ()
    related_conversations: tuple[ThreadRelatedConversation, ...] = ()
    merge_reasons: tuple[ThreadMergeReason, ...] = ()
    merge_state: MergeState = MergeState.SUGGESTED
    is_waiting_on_me: bool = False
    has_active_task: bool = False
    pinned: bool = False
    chronological_index: int = Field(default=0, ge=0)

    @property
    def message_count(self) -> int:
        total = sum(node.message_count() for node in self.root_nodes)
        for conversation in self.related_conversations:
            total += sum(node.message_count() for node in conversation.nodes)
        return total

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ThreadGroup):
            return NotImplemented
        return self.id == other.id and self.chronological_index == other.chronological_index

    def __hash__(self) -> int:
        return hash((self.id, self.chronological_index))
