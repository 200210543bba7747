"""Final display ordering for thread groups."""

from __future__ import annotations

from collections.abc import Collection, Iterable

from inbox_triage.models import ThreadGroup

RELEVANCE_WEIGHT = 0.2
URGENCY_WEIGHT = 0.4
PERSONAL_PRIORITY_WEIGHT = 0.25
TIMELINESS_WEIGHT = 0.15
ACTIVE_TASK_BONUS = 0.1
WAITING_ON_ME_BONUS = 0.15


def priority_score(group: ThreadGroup) -> float:
    signals = group.intent_signals
    score = signals.intent_relevance * RELEVANCE_WEIGHT
    score += signals.urgency_score * URGENCY_WEIGHT
    score += signals.personal_priority_score * PERSONAL_PRIORITY_WEIGHT
    score += signals.timeliness_score * TIMELINESS_WEIGHT
    if group.has_active_task:
        score += ACTIVE_TASK_BONUS
    if group.is_waiting_on_me:
        score += WAITING_ON_ME_BONUS
    return score


class ThreadOrderingPipeline:
    """Pinned groups first, then by descending priority, then chronological index."""

    def order(self, groups: Iterable[ThreadGroup], pins: Collection[str] = ()) -> list[ThreadGroup]:
        return sorted(
            groups,
            key=lambda g: (g.id not in pins, -priority_score(g), g.chronological_index),
        )
