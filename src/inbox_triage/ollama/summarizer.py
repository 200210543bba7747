"""Thread summaries backed by a local Ollama model."""

from __future__ import annotations

from typing import Optional

import structlog

from inbox_triage.exceptions import SummaryUnavailableError
from inbox_triage.ollama.client import OllamaClient

logger = structlog.get_logger()

SUMMARY_INSTRUCTIONS = (
    "You are an organized executive assistant reviewing an email inbox. "
    "Provide short plain-language digests that help the user understand what to focus on. "
    "Avoid bullet lists and instead write one or two compact sentences."
)


def prepare_subjects(subjects: list[str], limit: int = 25) -> list[str]:
    """Trimmed, de-duplicated subjects in first-seen order, at most ``limit``."""

    seen: set[str] = set()
    ordered: list[str] = []
    for subject in subjects:
        cleaned = subject.strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        ordered.append(cleaned)
        if len(ordered) == limit:
            break
    return ordered


def build_summary_prompt(subjects: list[str]) -> str:
    bullets = "\n".join(f"{i}. {s}" for i, s in enumerate(subjects, start=1))
    return (
        "Summarize the following email subject lines into at most two concise sentences.\n"
        "Highlight the main themes and call out any urgent follow ups that may require attention.\n"
        "Keep the tone professional and actionable.\n"
        "\n"
        f"Subjects:\n{bullets}"
    )


class OllamaThreadSummarizer:
    """Summarization capability for ThreadIntentAnalyzer."""

    def __init__(self, client: Optional[OllamaClient] = None, max_subjects: int = 25) -> None:
        self.client = client or OllamaClient()
        self.max_subjects = max_subjects

    async def summarize_thread(self, subjects: list[str]) -> str:
        """Summarize a thread from its subjects.

        Raises:
            SummaryUnavailableError: If there is nothing to summarize or the
                model returned an empty answer.
            OllamaConnectionError: If Ollama cannot be reached.
            OllamaInferenceError: If inference fails.
        """
        cleaned = prepare_subjects(subjects, self.max_subjects)
        if not cleaned:
            raise SummaryUnavailableError("No email subjects are available to summarize.")

        data = await self.client.generate(
            build_summary_prompt(cleaned),
            system=SUMMARY_INSTRUCTIONS,
            options={"temperature": 0.2, "num_predict": 120},
        )
        summary = data["response"].strip()
        if not summary:
            raise SummaryUnavailableError("Ollama returned an empty summary.")
        logger.debug("thread_summarized", subject_count=len(cleaned), summary_length=len(summary))
        return summary
