"""Inbox Triage - thread reconstruction and ranking for email inboxes.

This package turns a flat list of parsed email messages into conversation
threads, enriches each thread with intent signals, groups related threads
and orders the result for an inbox-triage view.
"""

__version__ = "0.1.0"
__author__ = "Trickl"

from inbox_triage.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__", "__author__"]
