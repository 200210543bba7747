"""Keyword heuristics for thread intent signals.

All checks run over the lowercased ``subject + " " + snippet`` of a thread's
root message. These are deliberately coarse; the scores only need to order
an inbox, not classify it.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from inbox_triage.models import (
    BadgeKind,
    EmailMessage,
    ThreadBadge,
    ThreadParticipant,
)

URGENT_KEYWORDS = ("urgent", "asap")
SAME_DAY_KEYWORDS = ("today", "eod")
PLANNING_KEYWORDS = ("plan", "schedule", "travel")
WAITING_ON_ME_PHRASES = ("waiting on you", "need your response", "awaiting reply")
ACTIVE_TASK_PHRASES = ("action required", "todo", "please review")

# First match wins.
TOPIC_TAGS: tuple[tuple[str, str], ...] = (
    ("travel", "Travel Plans"),
    ("invoice", "Finance"),
    ("meeting", "Meetings"),
)

URGENT_BADGE_THRESHOLD = 0.6


def message_text(message: EmailMessage) -> str:
    return f"{message.subject} {message.snippet}".lower()


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(n in text for n in needles)


def urgency_score(text: str) -> float:
    if _contains_any(text, URGENT_KEYWORDS):
        return 0.95
    if _contains_any(text, SAME_DAY_KEYWORDS):
        return 0.7
    return 0.2


def timeliness_score(date: datetime, now: datetime) -> float:
    age = now - date
    if age < timedelta(hours=12):
        return 0.8
    if age < timedelta(hours=48):
        return 0.5
    return 0.2


def intent_relevance(text: str) -> float:
    return 0.7 if _contains_any(text, PLANNING_KEYWORDS) else 0.3


def personal_priority_score(participants: Iterable[ThreadParticipant]) -> float:
    return 0.9 if any(p.is_vip for p in participants) else 0.2


def is_waiting_on_me(text: str) -> bool:
    return _contains_any(text, WAITING_ON_ME_PHRASES)


def has_active_task(text: str) -> bool:
    return _contains_any(text, ACTIVE_TASK_PHRASES)


def topic_tag(subject: str) -> str | None:
    lowered = subject.lower()
    for keyword, tag in TOPIC_TAGS:
        if keyword in lowered:
            return tag
    return None


def badges(
    *,
    urgency: float,
    waiting_on_me: bool,
    active_task: bool,
    participants: Iterable[ThreadParticipant],
) -> list[ThreadBadge]:
    """Badges in display order: urgent, awaiting reply, task, VIP."""

    result: list[ThreadBadge] = []
    if urgency >= URGENT_BADGE_THRESHOLD:
        result.append(ThreadBadge(kind=BadgeKind.URGENT, label="Urgent", accessibility_label="Urgent"))
    if waiting_on_me:
        result.append(
            ThreadBadge(
                kind=BadgeKind.AWAITING_REPLY,
                label="Awaiting Reply",
                accessibility_label="Awaiting your reply",
            )
        )
    if active_task:
        result.append(
            ThreadBadge(kind=BadgeKind.TASK, label="Action", accessibility_label="Contains action items")
        )
    if any(p.is_vip for p in participants):
        result.append(ThreadBadge(kind=BadgeKind.VIP, label="VIP", accessibility_label="VIP sender"))
    return result
