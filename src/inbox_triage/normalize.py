"""Identifier, subject and content-token normalization.

Pure helpers shared by the thread builder, the message model and the
intent analyzer.
"""

from __future__ import annotations

import re

_REPLY_PREFIX_RE = re.compile(r"^(re|fwd|fw):", re.IGNORECASE)
_TOKEN_SPLIT_RE = re.compile(r"[\W_]+")

CONTENT_STOP_WORDS: frozenset[str] = frozenset(
    {
        "about",
        "and",
        "are",
        "but",
        "can",
        "for",
        "from",
        "has",
        "have",
        "hello",
        "her",
        "his",
        "just",
        "not",
        "our",
        "please",
        "thanks",
        "that",
        "the",
        "their",
        "there",
        "this",
        "was",
        "were",
        "will",
        "with",
        "you",
        "your",
    }
)


def normalize_identifier(raw: str | None) -> str:
    """Canonicalize a Message-ID style identifier.

    Trims whitespace, strips one pair of enclosing angle brackets and
    lowercases. Returns an empty string for blank input; callers must
    substitute their own fallback identity in that case.
    """

    if not raw:
        return ""
    candidate = raw.strip()
    if not candidate:
        return ""
    if candidate.startswith("<") and candidate.endswith(">"):
        candidate = candidate[1:-1]
    return candidate.lower()


def canonical_subject(subject: str | None) -> str:
    """Strip reply/forward prefixes and leading ``[tag]`` markers, lowercased.

    Example:
        >>> canonical_subject("Re: [Team] Re: Budget")
        'budget'
    """

    s = (subject or "").strip()
    while True:
        before = s
        while True:
            m = _REPLY_PREFIX_RE.match(s)
            if m is None:
                break
            s = s[m.end():].strip()
        if s.startswith("["):
            close = s.find("]", 1)
            if close != -1:
                s = s[close + 1:].strip()
        if s == before:
            break
    return s.lower()


def tokenize(text: str | None) -> list[str]:
    """Split lowercased text on anything that is not a Unicode letter or digit."""

    if not text:
        return []
    return [t for t in _TOKEN_SPLIT_RE.split(text.lower()) if t]


def _significant_tokens(text: str | None) -> set[str]:
    return {t for t in tokenize(text) if len(t) >= 3 and t not in CONTENT_STOP_WORDS}


def content_tokens(snippet: str | None, subject: str | None = None) -> set[str]:
    """Tokens used to compare the content of two headerless messages.

    Taken from the snippet; when the snippet yields nothing the canonical
    subject is used instead.
    """

    tokens = _significant_tokens(snippet)
    if tokens:
        return tokens
    return _significant_tokens(canonical_subject(subject))


def jaccard(a: set[str], b: set[str]) -> float:
    if not a or not b:
        return 0.0
    inter = len(a & b)
    if inter == 0:
        return 0.0
    return inter / len(a | b)
