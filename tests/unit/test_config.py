"""Unit tests for configuration module."""

import pytest

from inbox_triage.config import Settings, get_settings


class TestSettings:
    """Test suite for Settings class."""

    def test_default_settings(self) -> None:
        """Test that default settings are properly initialized."""
        settings = Settings()

        assert settings.ollama_host == "http://localhost:11434"
        assert settings.summaries_enabled is False
        assert settings.similarity_threshold == 0.82
        assert settings.participant_overlap_threshold == 1
        assert settings.subject_merge_window_days == 7
        assert settings.subject_merge_min_jaccard == 0.25
        assert settings.vip_senders == set()
        assert settings.log_level == "INFO"

    def test_settings_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test loading settings from environment variables."""
        monkeypatch.setenv("INBOX_TRIAGE_OLLAMA_HOST", "http://custom:8080")
        monkeypatch.setenv("INBOX_TRIAGE_SIMILARITY_THRESHOLD", "0.5")
        monkeypatch.setenv("INBOX_TRIAGE_VIP_SENDERS", '["Boss@Example.com", " cfo@example.com "]')

        # Clear the cache to ensure fresh settings
        get_settings.cache_clear()

        settings = get_settings()

        assert settings.ollama_host == "http://custom:8080"
        assert settings.similarity_threshold == 0.5
        assert settings.vip_senders == {"boss@example.com", "cfo@example.com"}

        # Clean up
        get_settings.cache_clear()

    def test_threshold_out_of_range_rejected(self) -> None:
        with pytest.raises(Exception):  # Pydantic ValidationError
            Settings(similarity_threshold=1.5)

    def test_get_settings_returns_cached_instance(self) -> None:
        """Test that get_settings returns the same cached instance."""
        get_settings.cache_clear()

        settings1 = get_settings()
        settings2 = get_settings()

        assert settings1 is settings2

        # Clean up
        get_settings.cache_clear()
