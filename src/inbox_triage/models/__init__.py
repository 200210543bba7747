"""Data models for Inbox Triage.

This module re-exports the Pydantic models used across the pipeline.
"""

from inbox_triage.models.group import (
    MergeState,
    ThreadGroup,
    ThreadGroupSeed,
    ThreadMergeReason,
    ThreadRelatedConversation,
)
from inbox_triage.models.intent import (
    EMBEDDING_DIMENSIONS,
    BadgeKind,
    IntentEmbedding,
    ParticipantRole,
    ThreadBadge,
    ThreadIntentMetadata,
    ThreadIntentSignals,
    ThreadParticipant,
)
from inbox_triage.models.message import EmailMessage, EmailThread, ThreadingResult, ThreadNode

__all__ = [
    "EMBEDDING_DIMENSIONS",
    "BadgeKind",
    "EmailMessage",
    "EmailThread",
    "IntentEmbedding",
    "MergeState",
    "ParticipantRole",
    "ThreadBadge",
    "ThreadGroup",
    "ThreadGroupSeed",
    "ThreadIntentMetadata",
    "ThreadIntentSignals",
    "ThreadMergeReason",
    "ThreadNode",
    "ThreadParticipant",
    "ThreadRelatedConversation",
    "ThreadingResult",
]
