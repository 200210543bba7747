"""Command-line interface for Inbox Triage.

This module provides the main entry point for the CLI application. Both
commands read a JSON array of message objects, for example::

    [{"message_id": "<a@example.com>", "subject": "Hello", "from": "A <a@example.com>",
      "to": "b@example.com", "date": "2025-01-01T09:00:00Z", "snippet": "..."}]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import pydantic
import structlog

from inbox_triage.agent import TriageAgent
from inbox_triage.config import Settings, get_settings
from inbox_triage.exceptions import ConfigurationError, ValidationError
from inbox_triage.grouping import priority_score
from inbox_triage.models import EmailMessage, MergeState
from inbox_triage.utils import configure_logging

logger = structlog.get_logger()

_MESSAGES_ADAPTER = pydantic.TypeAdapter(list[EmailMessage])


def load_messages(path: Path) -> list[EmailMessage]:
    """Load and validate messages from a JSON file.

    Raises:
        ValidationError: If the file is missing or does not hold valid messages.
    """
    try:
        raw = path.read_bytes()
    except OSError as exc:
        raise ValidationError(f"Cannot read {path}: {exc}") from exc
    try:
        return _MESSAGES_ADAPTER.validate_json(raw)
    except pydantic.ValidationError as exc:
        raise ValidationError(f"Invalid messages in {path}: {exc}") from exc


def _load_settings() -> Settings:
    try:
        return get_settings()
    except pydantic.ValidationError as exc:
        raise ConfigurationError(f"Invalid INBOX_TRIAGE_ settings: {exc}") from exc


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="inbox-triage", description="Inbox Triage")
    subparsers = parser.add_subparsers(dest="command", required=True)

    threads_parser = subparsers.add_parser("threads", help="Reconstruct threads and list them")
    threads_parser.add_argument("messages", type=Path, help="JSON file with an array of messages")

    triage_parser = subparsers.add_parser(
        "triage",
        help="Build threads, group related conversations and print them in display order",
    )
    triage_parser.add_argument("messages", type=Path, help="JSON file with an array of messages")
    triage_parser.add_argument(
        "--pin",
        action="append",
        default=[],
        metavar="THREAD_ID",
        help="Pin a group to the top (repeatable)",
    )
    triage_parser.add_argument(
        "--accept",
        action="append",
        default=[],
        metavar="THREAD_ID",
        help="Accept merges for a thread (repeatable)",
    )
    triage_parser.add_argument(
        "--revert",
        action="append",
        default=[],
        metavar="THREAD_ID",
        help="Revert merges for a thread (repeatable)",
    )
    return parser


def _cmd_threads(args: argparse.Namespace) -> int:
    messages = load_messages(args.messages)
    result, _ = TriageAgent().build_threads(messages)
    for thread in result.threads:
        print(
            f"{thread.last_updated.isoformat()}\t{thread.message_count} msgs\t"
            f"{thread.unread_count} unread\t{thread.subject or '(no subject)'}\t{thread.id}"
        )
    return 0


async def _cmd_triage(args: argparse.Namespace) -> int:
    messages = load_messages(args.messages)
    overrides: dict[str, MergeState] = {}
    for thread_id in args.accept:
        overrides[thread_id] = MergeState.ACCEPTED
    for thread_id in args.revert:
        overrides[thread_id] = MergeState.REVERTED

    result = await TriageAgent().triage(messages, merge_overrides=overrides, pins=set(args.pin))
    for group in result.groups:
        pin = "PINNED\t" if group.pinned else ""
        badges = ",".join(b.label for b in group.badges) or "-"
        print(
            f"{pin}{priority_score(group):.2f}\t{badges}\t{group.message_count} msgs\t"
            f"{group.subject}\t{group.id}"
        )
        print(f"\t{group.summary}")
        for conversation in group.related_conversations:
            print(f"\t+ {conversation.title} ({conversation.reason.similarity:.2f})\t{conversation.id}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Inbox Triage CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    parser = _build_parser()
    parsed = parser.parse_args(args)

    try:
        configure_logging(_load_settings().log_level)
        if parsed.command == "threads":
            return _cmd_threads(parsed)
        if parsed.command == "triage":
            return asyncio.run(_cmd_triage(parsed))
    except ConfigurationError as exc:
        logger.error("invalid_configuration", error=str(exc))
        return 2
    except ValidationError as exc:
        logger.error("invalid_input", error=str(exc))
        return 2

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
