"""Message and thread-tree models.

Messages arrive from the ingestion layer already parsed into header fields and
a short body snippet. The thread builder only ever attaches a thread id to
them, producing a copy rather than mutating the original.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from inbox_triage.normalize import normalize_identifier


class EmailMessage(BaseModel):
    """A single parsed email message."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        description="Record identity, used as fallback when Message-ID is missing",
    )
    message_id: str = Field(
        default="",
        validation_alias=AliasChoices("message_id", "messageId", "messageID"),
        description="Raw Message-ID header",
    )
    mailbox_id: str = Field(
        default="inbox",
        validation_alias=AliasChoices("mailbox_id", "mailboxId"),
        description="Mailbox the message was fetched from",
    )
    subject: str = Field(default="", description="Subject header")
    sender: str = Field(
        default="",
        validation_alias=AliasChoices("sender", "from"),
        description="Raw From header",
    )
    to: str = Field(default="", description="Raw To header (comma separated)")
    date: datetime = Field(description="Message date")
    snippet: str = Field(default="", description="Short plain-text body excerpt")
    is_unread: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_unread", "isUnread"),
        description="Whether message is unread",
    )
    in_reply_to: str | None = Field(
        default=None,
        validation_alias=AliasChoices("in_reply_to", "inReplyTo"),
        description="Raw In-Reply-To header",
    )
    references: tuple[str, ...] = Field(
        default=(),
        description="Raw References identifiers, oldest ancestor first",
    )
    thread_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("thread_id", "threadId"),
        description="Assigned by the thread builder",
    )

    @field_validator("date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive dates are treated as UTC so every date in a build is comparable.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def normalized_id(self) -> str:
        return normalize_identifier(self.message_id)

    @property
    def thread_key(self) -> str:
        """Normalized Message-ID, or the lowercased record id when it is missing."""
        return self.normalized_id or self.id.lower()

    @property
    def has_reply_headers(self) -> bool:
        return bool((self.in_reply_to or "").strip()) or bool(self.references)

    def with_thread_id(self, thread_id: str | None) -> EmailMessage:
        return self.model_copy(update={"thread_id": thread_id})


class ThreadNode(BaseModel):
    """Immutable node of a reconstructed conversation tree."""

    model_config = ConfigDict(frozen=True)

    id: str
    message: EmailMessage
    children: tuple[ThreadNode, ...] = ()

    @classmethod
    def for_message(
        cls, message: EmailMessage, children: tuple[ThreadNode, ...] | list[ThreadNode] = ()
    ) -> ThreadNode:
        return cls(id=message.thread_key, message=message, children=tuple(children))

    @property
    def thread_id(self) -> str:
        return self.message.thread_id or self.message.thread_key

    def iter_messages(self) -> Iterator[EmailMessage]:
        """Yield this node's message and every descendant's, depth first."""
        yield self.message
        for child in self.children:
            yield from child.iter_messages()

    def message_count(self) -> int:
        return 1 + sum(child.message_count() for child in self.children)

    def unread_count(self) -> int:
        count = 1 if self.message.is_unread else 0
        for child in self.children:
            count += child.unread_count()
        return count

    def last_updated(self) -> datetime:
        return max(m.date for m in self.iter_messages())


class EmailThread(BaseModel):
    """Summary record for one reconstructed thread."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Thread id (normalized root Message-ID)")
    root_message_id: str | None = Field(default=None, description="Raw root Message-ID")
    subject: str = Field(default="", description="Root subject")
    last_updated: datetime = Field(description="Newest message date in the thread")
    unread_count: int = Field(default=0, ge=0)
    message_count: int = Field(default=1, ge=1)


@dataclass(frozen=True)
class ThreadingResult:
    """Output of one thread-building pass."""

    roots: list[ThreadNode]
    threads: list[EmailThread]
    message_thread_map: dict[str, str]
    manual_override_message_ids: frozenset[str] = field(default_factory=frozenset)
