"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from macrotrack.config.settings import (
    ApiSettings,
    ObservabilitySettings,
    Settings,
    TokenStorageMode,
    get_settings,
)


class TestApiSettings:
    """Test base URL normalization."""

    @pytest.mark.parametrize(
        "raw",
        [
            "https://api.example.com",
            "https://api.example.com/",
            "https://api.example.com/api/v1",
            "https://api.example.com/api/v1/",
        ],
    )
    def test_base_url_ends_with_api_prefix(self, raw):
        """Test that every spelling ends up at /api/v1."""
        assert ApiSettings(base_url=raw).base_url == "https://api.example.com/api/v1"

    def test_empty_base_url_rejected(self):
        """Test that an empty URL is a validation error."""
        with pytest.raises(ValidationError):
            ApiSettings(base_url="  ")

    def test_timeouts_must_be_positive(self):
        """Test the timeout bounds."""
        with pytest.raises(ValidationError):
            ApiSettings(refresh_timeout=0)


class TestObservabilitySettings:
    """Test logging settings."""

    def test_log_level_is_normalized(self):
        """Test that lower-case levels are accepted."""
        assert ObservabilitySettings(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level_rejected(self):
        """Test that typos are caught early."""
        with pytest.raises(ValidationError):
            ObservabilitySettings(log_level="LOUD")


class TestSettingsFromEnvironment:
    """Test env var loading."""

    def test_nested_env_vars(self, monkeypatch, tmp_path):
        """Test MACROTRACK_ prefix and __ nesting."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MACROTRACK_API__BASE_URL", "https://prod.example.com")
        monkeypatch.setenv("MACROTRACK_TOKEN_STORAGE__MODE", "plain")
        monkeypatch.setenv("MACROTRACK_OBSERVABILITY__JSON_LOGS", "true")

        settings = Settings()

        assert settings.api.base_url == "https://prod.example.com/api/v1"
        assert settings.token_storage.mode is TokenStorageMode.PLAIN
        assert settings.observability.json_logs is True

    def test_defaults(self, monkeypatch, tmp_path):
        """Test that defaults keep tokens in memory."""
        monkeypatch.chdir(tmp_path)
        settings = Settings()
        assert settings.token_storage.mode is TokenStorageMode.MEMORY
        assert settings.client_id_path is None

    def test_get_settings_is_cached(self, monkeypatch, tmp_path):
        """Test that get_settings() parses the environment once."""
        monkeypatch.chdir(tmp_path)
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
