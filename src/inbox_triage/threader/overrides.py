"""User-directed thread overrides.

A manual override says "this message belongs to that thread". Applying one
folds the message's whole current thread into the target thread; the affected
threads are rebuilt flat, with the previous root kept as root when possible.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from inbox_triage.models import EmailMessage, EmailThread, ThreadingResult, ThreadNode

logger = structlog.get_logger()


@dataclass(frozen=True)
class ManualOverrideApplication:
    result: ThreadingResult
    invalid_keys: list[str]


class _ThreadUnion:
    def __init__(self) -> None:
        self._parent: dict[str, str] = {}

    def find(self, thread_id: str) -> str:
        parent = self._parent.setdefault(thread_id, thread_id)
        if parent == thread_id:
            return thread_id
        root = self.find(parent)
        self._parent[thread_id] = root
        return root

    def merge(self, source: str, into: str) -> None:
        source_root = self.find(source)
        target_root = self.find(into)
        if source_root != target_root:
            self._parent[source_root] = target_root


def apply_manual_overrides(
    overrides: dict[str, str], result: ThreadingResult
) -> ManualOverrideApplication:
    """Apply ``{message key: target thread id}`` overrides to a threading result.

    Args:
        overrides: Map from message key (normalized Message-ID, or record id
            for messages without one) to the thread id it should join.
        result: Output of ``JWZThreader.build_threads``.

    Returns:
        ManualOverrideApplication: The updated result and the keys that could
        not be applied (unknown message, or already in the target thread).
    """

    if not overrides:
        return ManualOverrideApplication(result=result, invalid_keys=[])

    union = _ThreadUnion()
    invalid_keys: list[str] = []
    applied: set[str] = set()

    for message_key, target_thread_id in overrides.items():
        source_thread_id = result.message_thread_map.get(message_key)
        if source_thread_id is None or source_thread_id == target_thread_id:
            invalid_keys.append(message_key)
            continue
        union.merge(source_thread_id, into=target_thread_id)
        applied.add(message_key)

    if not applied:
        return ManualOverrideApplication(result=result, invalid_keys=invalid_keys)

    updated_map = {key: union.find(tid) for key, tid in result.message_thread_map.items()}
    affected = {union.find(result.message_thread_map[key]) for key in applied}

    preferred_roots = {t.id: t.root_message_id for t in result.threads if t.root_message_id}
    thread_by_id = {t.id: t for t in result.threads}

    messages_by_thread: dict[str, list[EmailMessage]] = {}
    moved_message_ids: set[str] = set()
    for root in result.roots:
        thread_id = union.find(root.thread_id)
        if thread_id not in affected:
            continue
        for message in root.iter_messages():
            messages_by_thread.setdefault(thread_id, []).append(message.with_thread_id(thread_id))
            if message.thread_key in applied:
                moved_message_ids.add(message.message_id)

    roots: list[ThreadNode] = []
    threads: list[EmailThread] = []
    emitted: set[str] = set()
    for root in result.roots:
        thread_id = union.find(root.thread_id)
        if thread_id not in affected:
            roots.append(root)
            threads.append(thread_by_id[root.thread_id])
            continue
        if thread_id in emitted:
            continue
        emitted.add(thread_id)
        rebuilt_root, thread = _rebuild(thread_id, messages_by_thread[thread_id], preferred_roots.get(thread_id))
        roots.append(rebuilt_root)
        threads.append(thread)

    logger.info(
        "manual_overrides_applied",
        applied=len(applied),
        invalid=len(invalid_keys),
        rebuilt_threads=len(emitted),
    )
    updated = ThreadingResult(
        roots=roots,
        threads=threads,
        message_thread_map=updated_map,
        manual_override_message_ids=frozenset(moved_message_ids),
    )
    return ManualOverrideApplication(result=updated, invalid_keys=invalid_keys)


def _rebuild(
    thread_id: str, messages: list[EmailMessage], preferred_root_id: str | None
) -> tuple[ThreadNode, EmailThread]:
    root_message = None
    if preferred_root_id:
        root_message = next((m for m in messages if m.message_id == preferred_root_id), None)
    if root_message is None:
        root_message = min(messages, key=lambda m: m.date)

    children = sorted((m for m in messages if m is not root_message), key=lambda m: m.date)
    root = ThreadNode.for_message(root_message, [ThreadNode.for_message(m) for m in children])
    thread = EmailThread(
        id=thread_id,
        root_message_id=root_message.message_id or None,
        subject=root_message.subject,
        last_updated=max(m.date for m in messages),
        unread_count=sum(1 for m in messages if m.is_unread),
        message_count=len(messages),
    )
    return root, thread
