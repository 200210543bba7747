"""JWZ-style thread reconstruction.

Threads are rebuilt from Message-ID / References / In-Reply-To headers in the
manner described by Jamie Zawinski's threading algorithm. Containers live in
an index-addressed arena; a container's parent is a plain index used only to
detach it before re-parenting.

After the header pass, headerless roots that share a canonical subject are
merged when their dates and snippet content are close enough. Explicit reply
headers always win over this heuristic since only true roots are candidates.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import structlog

from inbox_triage.models import EmailMessage, EmailThread, ThreadingResult, ThreadNode
from inbox_triage.normalize import canonical_subject, content_tokens, jaccard, normalize_identifier

logger = structlog.get_logger()


@dataclass
class _Container:
    identifier: str
    message: EmailMessage | None = None
    parent: int | None = None
    children: list[int] = field(default_factory=list)


class _ContainerArena:
    """Owns every container of a single build call."""

    def __init__(self) -> None:
        self._containers: list[_Container] = []
        self._by_identifier: dict[str, int] = {}

    def get_or_create(self, identifier: str) -> int:
        index = self._by_identifier.get(identifier)
        if index is None:
            index = len(self._containers)
            self._containers.append(_Container(identifier=identifier))
            self._by_identifier[identifier] = index
        return index

    def attach(self, index: int, message: EmailMessage) -> None:
        self._containers[index].message = message

    def adopt(self, parent: int, child: int) -> None:
        """Make ``parent`` the parent of ``child``, detaching it from any old parent."""

        if parent == child:
            return
        parent_container = self._containers[parent]
        if child in parent_container.children:
            return
        if self._is_ancestor(child, of=parent):
            # Malformed reference chains can describe a loop; keep the existing link.
            logger.debug(
                "thread_adoption_cycle_skipped",
                parent=parent_container.identifier,
                child=self._containers[child].identifier,
            )
            return

        child_container = self._containers[child]
        if child_container.parent is not None:
            self._containers[child_container.parent].children.remove(child)
        child_container.parent = parent
        parent_container.children.append(child)

    def _is_ancestor(self, candidate: int, *, of: int) -> bool:
        current: int | None = of
        while current is not None:
            if current == candidate:
                return True
            current = self._containers[current].parent
        return False

    def roots(self) -> list[int]:
        return [i for i, c in enumerate(self._containers) if c.parent is None]

    def flatten(self, index: int) -> list[ThreadNode]:
        """Turn a container subtree into thread nodes, skipping empty placeholders."""

        container = self._containers[index]
        child_nodes: list[ThreadNode] = []
        for child in container.children:
            child_nodes.extend(self.flatten(child))
        if container.message is None:
            return child_nodes
        child_nodes.sort(key=lambda n: n.message.date)
        return [ThreadNode.for_message(container.message, child_nodes)]


@dataclass
class _Summary:
    node: ThreadNode
    last_updated: datetime
    unread_count: int
    message_count: int


class JWZThreader:
    """Reconstruct conversation threads from a flat list of messages."""

    def __init__(
        self,
        subject_merge_window: timedelta = timedelta(days=7),
        subject_merge_min_jaccard: float = 0.25,
    ) -> None:
        self.subject_merge_window = subject_merge_window
        self.subject_merge_min_jaccard = subject_merge_min_jaccard

    def build_threads(self, messages: Iterable[EmailMessage]) -> ThreadingResult:
        """Build the thread forest for ``messages``.

        Args:
            messages: Parsed messages in any order.

        Returns:
            ThreadingResult: Annotated roots (newest first), one EmailThread per
            root and a map from message key to thread id.
        """

        arena = _ContainerArena()
        message_count = 0

        for message in messages:
            message_count += 1
            own = arena.get_or_create(message.thread_key)
            arena.attach(own, message)

            chain = list(message.references)
            if message.in_reply_to is not None:
                chain.append(message.in_reply_to)

            previous: int | None = None
            for ref in chain:
                normalized = normalize_identifier(ref)
                if not normalized:
                    continue
                current = arena.get_or_create(normalized)
                if previous is not None:
                    if current == previous:
                        continue
                    arena.adopt(previous, current)
                previous = current

            if previous is not None and previous != own:
                arena.adopt(previous, own)

        roots: list[ThreadNode] = []
        for index in arena.roots():
            roots.extend(arena.flatten(index))

        root_count = len(roots)
        roots = self._merge_subject_roots(roots)

        roots.sort(key=lambda n: n.message.subject.casefold())
        roots.sort(key=lambda n: n.message.date, reverse=True)

        annotated: list[ThreadNode] = []
        threads: list[EmailThread] = []
        message_map: dict[str, str] = {}
        for root in roots:
            thread_id = self.thread_identifier(root)
            summary = self._annotate(root, thread_id, message_map)
            annotated.append(summary.node)
            threads.append(
                EmailThread(
                    id=thread_id,
                    root_message_id=root.message.message_id or None,
                    subject=root.message.subject,
                    last_updated=summary.last_updated,
                    unread_count=summary.unread_count,
                    message_count=summary.message_count,
                )
            )

        logger.debug(
            "thread_build_completed",
            message_count=message_count,
            thread_count=len(threads),
            subject_merges=root_count - len(roots),
        )
        return ThreadingResult(roots=annotated, threads=threads, message_thread_map=message_map)

    @staticmethod
    def thread_identifier(node: ThreadNode) -> str:
        return node.message.thread_key

    def _merge_subject_roots(self, roots: list[ThreadNode]) -> list[ThreadNode]:
        result: list[ThreadNode] = []
        buckets: dict[str, list[ThreadNode]] = {}
        for node in roots:
            if node.message.has_reply_headers:
                result.append(node)
                continue
            key = canonical_subject(node.message.subject)
            if not key:
                result.append(node)
                continue
            buckets.setdefault(key, []).append(node)

        for bucket in buckets.values():
            if len(bucket) == 1:
                result.append(bucket[0])
                continue
            for component in self._components(bucket):
                result.append(self._graft(component) if len(component) > 1 else component[0])
        return result

    def _components(self, nodes: Sequence[ThreadNode]) -> list[list[ThreadNode]]:
        tokens = [content_tokens(n.message.snippet, n.message.subject) for n in nodes]
        parent = list(range(len(nodes)))

        def find(i: int) -> int:
            while parent[i] != i:
                parent[i] = parent[parent[i]]
                i = parent[i]
            return i

        for i in range(len(nodes)):
            for j in range(i + 1, len(nodes)):
                if self._related(nodes[i], tokens[i], nodes[j], tokens[j]):
                    ri, rj = find(i), find(j)
                    if ri != rj:
                        parent[max(ri, rj)] = min(ri, rj)

        components: dict[int, list[ThreadNode]] = {}
        for i, node in enumerate(nodes):
            components.setdefault(find(i), []).append(node)
        return list(components.values())

    def _related(
        self, a: ThreadNode, a_tokens: set[str], b: ThreadNode, b_tokens: set[str]
    ) -> bool:
        if abs(a.message.date - b.message.date) > self.subject_merge_window:
            return False
        if not a_tokens and not b_tokens:
            return True
        return jaccard(a_tokens, b_tokens) >= self.subject_merge_min_jaccard

    @staticmethod
    def _graft(component: list[ThreadNode]) -> ThreadNode:
        # Merged roots are treated as parallel replies to the earliest one.
        root = min(component, key=lambda n: n.message.date)
        children = list(root.children)
        children.extend(n for n in component if n is not root)
        children.sort(key=lambda n: n.message.date)
        return ThreadNode(id=root.id, message=root.message, children=tuple(children))

    def _annotate(self, node: ThreadNode, thread_id: str, message_map: dict[str, str]) -> _Summary:
        latest = node.message.date
        unread = 1 if node.message.is_unread else 0
        total = 1
        children: list[ThreadNode] = []
        for child in node.children:
            summary = self._annotate(child, thread_id, message_map)
            latest = max(latest, summary.last_updated)
            unread += summary.unread_count
            total += summary.message_count
            children.append(summary.node)

        message_map[node.message.thread_key] = thread_id
        updated = ThreadNode(
            id=node.id,
            message=node.message.with_thread_id(thread_id),
            children=tuple(children),
        )
        return _Summary(node=updated, last_updated=latest, unread_count=unread, message_count=total)
