"""Custom exceptions for Inbox Triage.

The threading, analysis and grouping pipeline never raises these to its
caller; they surface only from the Ollama integration and input loading.
"""


class InboxTriageError(Exception):
    """Base exception for all Inbox Triage errors."""


class OllamaConnectionError(InboxTriageError):
    """Exception raised when unable to connect to Ollama."""


class OllamaInferenceError(InboxTriageError):
    """Exception raised when Ollama inference fails."""


class SummaryUnavailableError(InboxTriageError):
    """Exception raised when a summary cannot be produced for a thread."""


class ConfigurationError(InboxTriageError):
    """Exception raised for configuration related errors."""


class ValidationError(InboxTriageError):
    """Exception raised for message input validation errors."""
