"""Per-thread intent models: participants, badges, signals and embeddings."""

from __future__ import annotations

import hashlib
import math
from collections.abc import Iterable
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from inbox_triage.normalize import tokenize

EMBEDDING_DIMENSIONS = 8


class ParticipantRole(str, Enum):
    """Role a participant plays in a thread."""

    REQUESTER = "requester"
    OWNER = "owner"
    COLLABORATOR = "collaborator"
    OBSERVER = "observer"
    UNKNOWN = "unknown"


class ThreadParticipant(BaseModel):
    """A sender or recipient of a thread, identified by lowercased email."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    role: ParticipantRole = ParticipantRole.UNKNOWN
    is_vip: bool = False

    @property
    def id(self) -> str:
        return self.email.lower()

    @classmethod
    def inferred(
        cls,
        name: str,
        address: str,
        role: ParticipantRole,
        vip_senders: Iterable[str] = (),
    ) -> ThreadParticipant:
        email = address.strip().lower()
        display = name.strip() or email
        return cls(name=display, email=email, role=role, is_vip=email in set(vip_senders))


class BadgeKind(str, Enum):
    """Badge kinds shown next to a thread."""

    URGENT = "urgent"
    AWAITING_REPLY = "awaiting_reply"
    SCHEDULED = "scheduled"
    VIP = "vip"
    TASK = "task"


class ThreadBadge(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: BadgeKind
    label: str
    accessibility_label: str

    @property
    def id(self) -> str:
        return f"{self.kind.value}-{self.label}"


class ThreadIntentSignals(BaseModel):
    """Heuristic scores in [0, 1] used by the ordering pipeline."""

    model_config = ConfigDict(frozen=True)

    intent_relevance: float = Field(ge=0.0, le=1.0)
    urgency_score: float = Field(ge=0.0, le=1.0)
    personal_priority_score: float = Field(ge=0.0, le=1.0)
    timeliness_score: float = Field(ge=0.0, le=1.0)


def _bucket(token: str, size: int) -> int:
    # Stable across processes, unlike the builtin (salted) str hash.
    digest = hashlib.sha256(token.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False) % size


class IntentEmbedding(BaseModel):
    """Hash-bucket bag-of-words fingerprint of a thread's subjects.

    Vectors are unit length, except the all-zero vector produced for text
    without tokens, which is left as is and is similar to nothing.
    """

    model_config = ConfigDict(frozen=True)

    values: tuple[float, ...] = Field(default=(0.0,) * EMBEDDING_DIMENSIONS)

    @classmethod
    def make(cls, text: str, dimensions: int = EMBEDDING_DIMENSIONS) -> IntentEmbedding:
        vector = [0.0] * dimensions
        for token in tokenize(text):
            vector[_bucket(token, dimensions)] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0.0:
            return cls(values=tuple(vector))
        return cls(values=tuple(v / norm for v in vector))

    @property
    def magnitude(self) -> float:
        return math.sqrt(sum(v * v for v in self.values))

    def cosine_similarity(self, other: IntentEmbedding) -> float:
        if len(self.values) != len(other.values):
            return 0.0
        denominator = self.magnitude * other.magnitude
        if denominator == 0.0:
            return 0.0
        dot = sum(a * b for a, b in zip(self.values, other.values))
        return dot / denominator


class ThreadIntentMetadata(BaseModel):
    """Everything derived about one thread during an analysis pass."""

    model_config = ConfigDict(frozen=True)

    thread_id: str
    summary: str
    topic_tag: str | None = None
    participants: tuple[ThreadParticipant, ...] = ()
    badges: tuple[ThreadBadge, ...] = ()
    intent_signals: ThreadIntentSignals
    is_waiting_on_me: bool = False
    has_active_task: bool = False
    embedding: IntentEmbedding = Field(default_factory=IntentEmbedding)
    participant_lookup: frozenset[str] = frozenset()
    last_updated: datetime
    unread_count: int = Field(default=0, ge=0)
    chronological_index: int = Field(default=0, ge=0)
