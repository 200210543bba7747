"""Ollama integration: HTTP client and the thread summarizer built on it."""

from .client import OllamaClient
from .summarizer import OllamaThreadSummarizer

__all__ = ["OllamaClient", "OllamaThreadSummarizer"]
