"""Configuration management for Inbox Triage.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the INBOX_TRIAGE_ prefix (e.g., INBOX_TRIAGE_OLLAMA_HOST). Set-valued
    fields are given as JSON lists (e.g., '["boss@example.com"]').
    """

    model_config = SettingsConfigDict(
        env_prefix="INBOX_TRIAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Ollama Configuration
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama API host URL",
    )
    ollama_model: str = Field(
        default="llama3.2",
        description="Ollama model used for thread summaries",
    )
    ollama_timeout: int = Field(
        default=30,
        description="Timeout for Ollama API requests in seconds",
    )
    summaries_enabled: bool = Field(
        default=False,
        description="Ask Ollama for thread summaries instead of using the first subject",
    )
    summary_max_subjects: int = Field(
        default=25,
        description="Maximum number of distinct subjects sent to the summarizer",
    )

    # Participants
    vip_senders: set[str] = Field(
        default_factory=set,
        description="Addresses whose presence marks a thread as VIP",
    )
    ignored_participants: set[str] = Field(
        default_factory=set,
        description="Addresses ignored when computing participant overlap (usually your own)",
    )

    # Threading and merging
    similarity_threshold: float = Field(
        default=0.82,
        ge=0.0,
        le=1.0,
        description="Minimum embedding cosine similarity for a suggested merge",
    )
    participant_overlap_threshold: int = Field(
        default=1,
        ge=0,
        description="Minimum number of shared participants for a suggested merge",
    )
    subject_merge_window_days: int = Field(
        default=7,
        ge=0,
        description="Maximum date distance for merging headerless roots by subject",
    )
    subject_merge_min_jaccard: float = Field(
        default=0.25,
        ge=0.0,
        le=1.0,
        description="Minimum content-token Jaccard similarity for merging headerless roots",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    max_retries: int = Field(
        default=2,
        description="Maximum number of retries for transient Ollama failures",
    )

    @field_validator("vip_senders", "ignored_participants")
    @classmethod
    def _lowercase_addresses(cls, value: set[str]) -> set[str]:
        return {v.strip().lower() for v in value if v.strip()}


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
