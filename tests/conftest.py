"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

NOW = datetime(2025, 6, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    """Fixed "current time" used by analyzer clocks."""
    return NOW


@pytest.fixture
def mock_settings():
    """Provide mock settings for testing."""
    from inbox_triage.config import Settings

    return Settings(
        ollama_host="http://test:11434",
        ollama_model="test-model",
        log_level="DEBUG",
        debug=True,
        max_retries=0,
        vip_senders={"boss@example.com"},
        ignored_participants={"me@example.com"},
    )


@pytest.fixture
def make_message():
    """Factory for EmailMessage records with sensible defaults."""
    from inbox_triage.models import EmailMessage

    def _make(
        message_id: str,
        subject: str = "",
        snippet: str = "",
        *,
        sender: str = "Alex <alex@example.com>",
        to: str = "Taylor <taylor@example.com>",
        date: datetime | None = None,
        hours_ago: float = 0,
        is_unread: bool = True,
        in_reply_to: str | None = None,
        references: tuple[str, ...] = (),
        **extra,
    ) -> EmailMessage:
        return EmailMessage(
            message_id=message_id,
            subject=subject,
            snippet=snippet,
            sender=sender,
            to=to,
            date=date or NOW - timedelta(hours=hours_ago),
            is_unread=is_unread,
            in_reply_to=in_reply_to,
            references=references,
            **extra,
        )

    return _make


@pytest.fixture
def sample_messages(make_message) -> list:
    """A small inbox: one reply chain, one headerless pair, one standalone."""
    return [
        make_message(
            "<plan@example.com>",
            "Travel plans for the offsite",
            "Draft itinerary attached, please review today",
            hours_ago=30,
        ),
        make_message(
            "<plan-reply@example.com>",
            "Re: Travel plans for the offsite",
            "Looks good, waiting on you for the hotel choice",
            sender="Taylor <taylor@example.com>",
            to="Alex <alex@example.com>",
            hours_ago=2,
            in_reply_to="<plan@example.com>",
            references=("<plan@example.com>",),
        ),
        make_message(
            "<invoice-1@example.com>",
            "Invoice 2291",
            "Your invoice for May services is attached",
            sender="Billing <billing@vendor.com>",
            to="me@example.com",
            hours_ago=50,
            is_unread=False,
        ),
        make_message(
            "<invoice-2@example.com>",
            "Fwd: Invoice 2291",
            "Forwarding the May services invoice for approval",
            sender="Billing <billing@vendor.com>",
            to="me@example.com",
            hours_ago=20,
        ),
        make_message(
            "<lunch@example.com>",
            "Lunch?",
            "Free on Thursday?",
            sender="Sam <sam@example.com>",
            to="me@example.com",
            hours_ago=5,
        ),
    ]
