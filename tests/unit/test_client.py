"""Tests for the MacroTrackClient composition root."""

import logging

import httpx
import pytest
from cryptography.fernet import Fernet

from macrotrack import MacroTrackClient
from macrotrack.config.settings import Settings, TokenStorageMode, TokenStorageSettings
from macrotrack.domain.exceptions import SessionExpiredError
from macrotrack.domain.value_objects import Token
from macrotrack.infrastructure.storage import EncryptedFileBackend, TokenStore


def fake_backend(request: httpx.Request) -> httpx.Response:
    path = request.url.path.removeprefix("/api/v1")
    if path == "/auth/login":
        return httpx.Response(200, json={"access_token": "access-1", "refresh_token": "refresh-1"})
    if path == "/auth/refresh-token":
        return httpx.Response(401, json={"detail": "Refresh token expired"})
    if path == "/auth/logout":
        return httpx.Response(204)
    if path == "/app/version":
        return httpx.Response(200, json={"current_version": "1.4.0", "tos_current_version": "2"})
    if request.headers.get("Authorization") == "Bearer access-1":
        return httpx.Response(200, json={"email": "me@example.com", "coins": 5})
    return httpx.Response(401)


class TestMacroTrackClient:
    """Test wiring and lifecycle."""

    async def test_login_and_call(self, settings):
        """Test a full login -> authenticated call -> logout flow."""
        async with MacroTrackClient(
            settings, transport=httpx.MockTransport(fake_backend)
        ) as client:
            assert (await client.backend.get_app_config())["current_version"] == "1.4.0"

            await client.session.login("me@example.com", "secret")
            status = await client.backend.get_user_status()
            await client.session.logout()

            assert status["coins"] == 5
            assert await client.session.is_logged_in() is False

        assert client.pool.is_initialized() is False

    async def test_expired_session_notifies_listener(self, settings):
        """Test that a dead refresh token logs the user out."""
        reasons: list[str] = []
        client = MacroTrackClient(settings, transport=httpx.MockTransport(fake_backend))
        client.session.register_logout_listener(reasons.append)
        await client.token_store.save(Token(access_token="expired", refresh_token="refresh-1"))

        with pytest.raises(SessionExpiredError):
            await client.backend.get_user_status()

        assert reasons == ["refresh_failed"]
        await client.close()

    def test_secure_mode_uses_encrypted_backend(self, tmp_path):
        """Test that storage settings pick the backend."""
        settings = Settings(
            token_storage=TokenStorageSettings(
                mode=TokenStorageMode.SECURE,
                path=tmp_path / "token",
                encryption_key=Fernet.generate_key().decode(),
            )
        )
        client = MacroTrackClient(settings)
        assert isinstance(client.token_store, TokenStore)
        assert isinstance(client.token_store.backend, EncryptedFileBackend)

    def test_plain_mode_warns(self, tmp_path, caplog):
        """Test that unencrypted storage is called out in the logs."""
        settings = Settings(
            token_storage=TokenStorageSettings(mode=TokenStorageMode.PLAIN, path=tmp_path / "t")
        )
        with caplog.at_level(logging.WARNING, logger="macrotrack.client"):
            MacroTrackClient(settings)
        assert "UNENCRYPTED" in caplog.text
