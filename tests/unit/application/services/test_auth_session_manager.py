"""Tests for AuthSessionManager."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from macrotrack.application.services.auth_session_manager import AuthSessionManager
from macrotrack.domain.exceptions import AuthenticationFailedError, NetworkError
from macrotrack.domain.value_objects import Token
from macrotrack.infrastructure.integrations import AuthApiClient


@pytest.fixture
def api() -> MagicMock:
    return MagicMock(spec=AuthApiClient)


@pytest.fixture
def session(api, token_store) -> AuthSessionManager:
    return AuthSessionManager(api, token_store)


class TestLogin:
    """Test starting a session."""

    async def test_login_persists_token(self, session, api, token_store, token):
        """Test that a successful login stores the token."""
        api.login = AsyncMock(return_value=token)

        result = await session.login("me@example.com", "secret")

        assert result == token
        assert await token_store.get() == token
        assert await session.is_logged_in() is True

    async def test_failed_login_stores_nothing(self, session, api, token_store):
        """Test that rejected credentials leave the session empty."""
        api.login = AsyncMock(side_effect=AuthenticationFailedError("Incorrect email or password."))

        with pytest.raises(AuthenticationFailedError):
            await session.login("me@example.com", "wrong")

        assert await token_store.get() is None


class TestRefresh:
    """Test refresh helpers."""

    async def test_refresh_does_not_persist(self, session, api, token_store, token):
        """Test that refresh() only returns the new pair."""
        newer = Token(access_token="access-2", refresh_token="refresh-2")
        api.refresh = AsyncMock(return_value=newer)
        await token_store.save(token)

        assert await session.refresh("refresh-1") == newer
        assert await token_store.get() == token

        await session.store_refreshed(newer)
        assert await session.current_token() == newer


class TestLogout:
    """Test voluntary logout."""

    async def test_logout_notifies_server_and_clears(self, session, api, token_store, token):
        """Test the happy path."""
        api.logout = AsyncMock()
        await token_store.save(token)

        await session.logout()

        api.logout.assert_awaited_once_with("access-1")
        assert await token_store.get() is None

    async def test_logout_when_logged_out_makes_no_network_call(self, session, api):
        """Test that logout without a session is a local no-op."""
        api.logout = AsyncMock()

        await session.logout()
        await session.logout()

        api.logout.assert_not_awaited()

    async def test_logout_clears_even_when_server_unreachable(
        self, session, api, token_store, token
    ):
        """Test that a network failure never keeps the user logged in."""
        api.logout = AsyncMock(side_effect=NetworkError())
        await token_store.save(token)

        await session.logout()

        assert await token_store.get() is None


class TestTriggerLogout:
    """Test forced logout."""

    async def test_listeners_run_before_session_is_cleared(self, session, token_store, token):
        """Test that listeners can still see the old session."""
        await token_store.save(token)
        seen: list[Token | None] = []

        async def listener(reason: str) -> None:
            seen.append(await token_store.get())

        session.register_logout_listener(listener)

        await session.trigger_logout("refresh_failed")

        assert seen == [token]
        assert await token_store.get() is None

    async def test_unsubscribed_listener_is_not_called(self, session):
        """Test the disposer returned by register_logout_listener."""
        listener = MagicMock(return_value=None)
        unsubscribe = session.register_logout_listener(listener)
        unsubscribe()

        await session.trigger_logout()

        listener.assert_not_called()


class TestAccountCalls:
    """Test pass-through account calls."""

    async def test_register_and_reset(self, session, api):
        """Test that register and password reset reach the API client."""
        api.register = AsyncMock(return_value={"id": 1})
        api.request_password_reset = AsyncMock(return_value={"message": "sent"})

        assert await session.register("me@example.com", "secret") == {"id": 1}
        assert await session.request_password_reset("me@example.com") == {"message": "sent"}
