"""Pipeline orchestration."""

from .triage_agent import TriageAgent, TriageResult

__all__ = ["TriageAgent", "TriageResult"]
