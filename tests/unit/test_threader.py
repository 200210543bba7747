"""Unit tests for JWZ thread reconstruction and subject merging."""

from __future__ import annotations

from datetime import timedelta

from inbox_triage.models import EmailMessage, ThreadNode
from inbox_triage.threader import JWZThreader


def _all_messages(roots: list[ThreadNode]) -> list[EmailMessage]:
    return [m for root in roots for m in root.iter_messages()]


class TestHeaderThreading:
    """Threading driven by References / In-Reply-To."""

    def test_reply_header_overrides_content_disagreement(self, make_message) -> None:
        messages = [
            make_message("<A@example.com>", "Quarterly Results", "Budget variance review for Q4."),
            make_message(
                "<b@example.com>",
                "RE: Quarterly Results",
                "Team offsite agenda and staffing updates.",
                in_reply_to="<A@example.com>",
                hours_ago=1,
            ),
        ]

        result = JWZThreader().build_threads(messages)

        assert len(result.threads) == 1
        assert result.threads[0].message_count == 2
        assert result.threads[0].id == "a@example.com"
        assert result.message_thread_map == {
            "a@example.com": "a@example.com",
            "b@example.com": "a@example.com",
        }

    def test_reference_chain_builds_nested_tree(self, make_message) -> None:
        messages = [
            make_message(
                "<m3@x>",
                "Re: Re: Plan",
                hours_ago=1,
                references=("<m1@x>", "<m2@x>"),
                in_reply_to="<m2@x>",
            ),
            make_message("<m1@x>", "Plan", hours_ago=3),
            make_message("<m2@x>", "Re: Plan", hours_ago=2, references=("<m1@x>",)),
        ]

        result = JWZThreader().build_threads(messages)

        assert len(result.roots) == 1
        root = result.roots[0]
        assert root.id == "m1@x"
        assert [c.id for c in root.children] == ["m2@x"]
        assert [c.id for c in root.children[0].children] == ["m3@x"]

    def test_missing_ancestor_placeholder_is_flattened(self, make_message) -> None:
        messages = [
            make_message("<c1@x>", "Re: Gone", "first", hours_ago=2, in_reply_to="<missing@x>"),
            make_message("<c2@x>", "Re: Gone", "first", hours_ago=1, references=("<missing@x>",)),
        ]

        result = JWZThreader().build_threads(messages)

        # Siblings under an unseen parent become separate roots; they carry
        # reply headers so the subject merge leaves them alone.
        assert sorted(t.id for t in result.threads) == ["c1@x", "c2@x"]
        assert "missing@x" not in result.message_thread_map

    def test_children_sorted_by_date(self, make_message) -> None:
        messages = [
            make_message("<root@x>", "Root", hours_ago=10),
            make_message("<late@x>", "Re: Root", hours_ago=1, in_reply_to="<root@x>"),
            make_message("<early@x>", "Re: Root", hours_ago=5, in_reply_to="<root@x>"),
        ]

        result = JWZThreader().build_threads(messages)

        assert [c.id for c in result.roots[0].children] == ["early@x", "late@x"]

    def test_reference_loop_keeps_every_message(self, make_message) -> None:
        messages = [
            make_message("<m1@x>", "Loop", hours_ago=2, in_reply_to="<m2@x>"),
            make_message("<m2@x>", "Loop", hours_ago=1, in_reply_to="<m1@x>"),
        ]

        result = JWZThreader().build_threads(messages)

        assert len(result.threads) == 1
        assert result.threads[0].message_count == 2
        assert len(result.message_thread_map) == 2

    def test_self_reference_is_ignored(self, make_message) -> None:
        messages = [make_message("<solo@x>", "Solo", in_reply_to="<solo@x>", references=("<solo@x>",))]

        result = JWZThreader().build_threads(messages)

        assert len(result.threads) == 1
        assert result.roots[0].children == ()

    def test_later_headers_reparent_existing_container(self, make_message) -> None:
        messages = [
            make_message("<c@x>", "Re: Re: Plan", hours_ago=1, references=("<x@x>", "<b@x>")),
            make_message("<b@x>", "Re: Plan", hours_ago=2, references=("<a@x>",)),
            make_message("<a@x>", "Plan", hours_ago=3),
        ]

        result = JWZThreader().build_threads(messages)

        assert [r.id for r in result.roots] == ["a@x"]
        root = result.roots[0]
        assert [c.id for c in root.children] == ["b@x"]
        assert [c.id for c in root.children[0].children] == ["c@x"]
        assert "x@x" not in result.message_thread_map

        def child_ids(node):
            yield from (c.id for c in node.children)
            for c in node.children:
                yield from child_ids(c)

        assert list(child_ids(root)).count("b@x") == 1

    def test_duplicate_message_id_keeps_last_message(self, make_message) -> None:
        messages = [
            make_message("<Dup@x>", "First copy", hours_ago=2),
            make_message(" <dup@X> ", "Second copy", hours_ago=1),
        ]

        result = JWZThreader().build_threads(messages)

        assert len(result.threads) == 1
        assert result.threads[0].message_count == 1
        assert result.roots[0].message.subject == "Second copy"
        assert result.message_thread_map == {"dup@x": "dup@x"}

    def test_missing_message_id_falls_back_to_record_id(self, make_message) -> None:
        messages = [
            make_message("", "No id here", id="Record-1"),
            make_message("  ", "Also no id", id="Record-2", hours_ago=1),
        ]

        result = JWZThreader().build_threads(messages)

        assert len(result.threads) == 2
        assert result.message_thread_map == {"record-1": "record-1", "record-2": "record-2"}
        assert result.threads[0].root_message_id is None


class TestThreadSummaries:
    def test_every_message_appears_exactly_once(self, sample_messages) -> None:
        result = JWZThreader().build_threads(sample_messages)

        keys = sorted(m.thread_key for m in _all_messages(result.roots))
        assert keys == sorted(m.thread_key for m in sample_messages)
        assert set(result.message_thread_map) == set(keys)
        assert sum(t.message_count for t in result.threads) == len(sample_messages)

    def test_messages_are_annotated_with_thread_id(self, sample_messages) -> None:
        result = JWZThreader().build_threads(sample_messages)

        for root, thread in zip(result.roots, result.threads):
            assert {m.thread_id for m in root.iter_messages()} == {thread.id}
        # Inputs are not mutated.
        assert all(m.thread_id is None for m in sample_messages)

    def test_roots_newest_first_with_subject_tiebreak(self, make_message, now) -> None:
        messages = [
            make_message("<old@x>", "Old", hours_ago=48),
            make_message("<b@x>", "beta", date=now),
            make_message("<a@x>", "Alpha", date=now),
        ]

        result = JWZThreader().build_threads(messages)

        assert [t.id for t in result.threads] == ["a@x", "b@x", "old@x"]

    def test_thread_aggregates(self, make_message) -> None:
        messages = [
            make_message("<r@x>", "Root", hours_ago=10, is_unread=False),
            make_message("<c1@x>", "Re: Root", hours_ago=5, in_reply_to="<r@x>"),
            make_message("<c2@x>", "Re: Root", hours_ago=1, in_reply_to="<c1@x>"),
        ]

        result = JWZThreader().build_threads(messages)

        thread = result.threads[0]
        assert thread.unread_count == 2
        assert thread.message_count == 3
        assert thread.last_updated == messages[2].date
        assert thread.root_message_id == "<r@x>"
        assert thread.subject == "Root"


class TestSubjectMerge:
    """Merging of headerless roots by canonical subject and content."""

    def test_subject_only_messages_merge_when_content_aligns(self, make_message) -> None:
        messages = [
            make_message(
                "msg-a",
                "RE: IBM Consulting GCG Newsletter in 2025 December preparation for [Innovation] module",
                "Align on Innovation module talking points and newsletter summary.",
                sender="Andy Wang <andy@example.com>",
                to="Isaac Wong <isaac@example.com>",
            ),
            make_message(
                "msg-b",
                "IBM Consulting GCG Newsletter in 2025 December preparation for [Innovation] module",
                "Newsletter prep for Innovation module deliverables in December.",
                sender="Victor Lee <victor@example.com>",
                to="Elisa Lin <elisa@example.com>",
                hours_ago=12,
            ),
        ]

        result = JWZThreader().build_threads(messages)

        assert len(result.threads) == 1
        assert result.threads[0].message_count == 2
        # The earliest message becomes the root.
        assert result.threads[0].id == "msg-b"
        assert [c.id for c in result.roots[0].children] == ["msg-a"]
        assert result.message_thread_map["msg-a"] == "msg-b"

    def test_subject_only_messages_do_not_merge_when_content_differs(self, make_message) -> None:
        messages = [
            make_message(
                "msg-a",
                "Quarterly Results",
                "Budget variance review for Q4 finance forecast and margins.",
            ),
            make_message(
                "msg-b",
                "RE: Quarterly Results",
                "Team offsite agenda and staffing updates unrelated to finance.",
                hours_ago=1,
            ),
        ]

        result = JWZThreader().build_threads(messages)

        assert len(result.threads) == 2

    def test_non_latin_content_is_compared(self, make_message) -> None:
        differing = [
            make_message("msg-a", "四半期の結果", "予算の差異レビュー"),
            make_message("msg-b", "Re: 四半期の結果", "チームのオフサイト日程", hours_ago=1),
        ]
        matching = [
            make_message("msg-a", "四半期の結果", "予算の差異レビュー"),
            make_message("msg-b", "Re: 四半期の結果", "予算の差異レビュー", hours_ago=1),
        ]

        assert len(JWZThreader().build_threads(differing).threads) == 2
        assert len(JWZThreader().build_threads(matching).threads) == 1

    def test_different_subjects_do_not_merge(self, make_message) -> None:
        messages = [
            make_message("msg-a", "Budget review", "Budget variance review"),
            make_message("msg-b", "Hiring plan", "Budget variance review", hours_ago=1),
        ]

        assert len(JWZThreader().build_threads(messages).threads) == 2

    def test_merge_window_is_respected(self, make_message) -> None:
        messages = [
            make_message("msg-a", "Status report", "Weekly status report numbers"),
            make_message("msg-b", "Status report", "Weekly status report numbers", hours_ago=8 * 24),
        ]

        assert len(JWZThreader().build_threads(messages).threads) == 2
        wide = JWZThreader(subject_merge_window=timedelta(days=10))
        assert len(wide.build_threads(messages).threads) == 1

    def test_empty_content_on_both_sides_merges(self, make_message) -> None:
        messages = [
            make_message("msg-a", "Hi", ""),
            make_message("msg-b", "Re: Hi", "", hours_ago=3),
        ]

        result = JWZThreader().build_threads(messages)

        assert len(result.threads) == 1

    def test_empty_canonical_subject_is_never_bucketed(self, make_message) -> None:
        messages = [
            make_message("msg-a", "Re:", ""),
            make_message("msg-b", "", "", hours_ago=1),
        ]

        assert len(JWZThreader().build_threads(messages).threads) == 2

    def test_components_are_transitive(self, make_message) -> None:
        messages = [
            make_message("msg-a", "Launch", "alpha bravo charlie delta", hours_ago=0),
            make_message("msg-b", "Launch", "charlie delta echo foxtrot", hours_ago=1),
            make_message("msg-c", "Launch", "echo foxtrot golf hotel", hours_ago=2),
        ]

        result = JWZThreader().build_threads(messages)

        # a~b and b~c share 2/6 tokens each; a and c share none.
        assert len(result.threads) == 1
        root = result.roots[0]
        assert root.id == "msg-c"
        assert [c.id for c in root.children] == ["msg-b", "msg-a"]

    def test_merged_root_keeps_existing_children(self, make_message) -> None:
        messages = [
            make_message("<a@x>", "Design doc", "architecture design review notes", hours_ago=10),
            make_message("<a-reply@x>", "Re: Design doc", "ok", hours_ago=4, in_reply_to="<a@x>"),
            make_message("<b@x>", "Design doc", "design review architecture follow", hours_ago=6),
        ]

        result = JWZThreader().build_threads(messages)

        assert len(result.threads) == 1
        assert result.threads[0].message_count == 3
        assert [c.id for c in result.roots[0].children] == ["b@x", "a-reply@x"]
