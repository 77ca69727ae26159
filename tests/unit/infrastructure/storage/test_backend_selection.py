"""Tests for token storage backend selection."""

import pytest
from cryptography.fernet import Fernet

from macrotrack.config.settings import TokenStorageMode, TokenStorageSettings
from macrotrack.domain.exceptions import ConfigurationError
from macrotrack.infrastructure.storage import (
    EncryptedFileBackend,
    MemoryBackend,
    PlainFileBackend,
    select_token_backend,
)


class TestSelectTokenBackend:
    """Test mode -> backend mapping."""

    def test_default_is_memory(self):
        """Test that default settings keep tokens in memory."""
        assert isinstance(select_token_backend(TokenStorageSettings()), MemoryBackend)

    def test_plain_mode(self, tmp_path):
        """Test that plain mode writes to the configured path."""
        backend = select_token_backend(
            TokenStorageSettings(mode=TokenStorageMode.PLAIN, path=tmp_path / "token")
        )
        assert isinstance(backend, PlainFileBackend)
        assert backend.path == tmp_path / "token"

    def test_secure_mode(self, tmp_path):
        """Test that secure mode builds the encrypted backend."""
        backend = select_token_backend(
            TokenStorageSettings(
                mode=TokenStorageMode.SECURE,
                path=tmp_path / "token",
                encryption_key=Fernet.generate_key().decode(),
            )
        )
        assert isinstance(backend, EncryptedFileBackend)

    def test_secure_mode_without_key_fails(self, tmp_path):
        """Test that secure mode refuses to run without a key."""
        with pytest.raises(ConfigurationError):
            select_token_backend(
                TokenStorageSettings(mode=TokenStorageMode.SECURE, path=tmp_path / "token")
            )

    def test_same_settings_same_backend_type(self, tmp_path):
        """Test that selection depends only on the settings passed in."""
        settings = TokenStorageSettings(mode=TokenStorageMode.PLAIN, path=tmp_path / "token")
        assert type(select_token_backend(settings)) is type(select_token_backend(settings))
