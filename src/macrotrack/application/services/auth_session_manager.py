"""Auth session manager - owner of the current session.

Hey future me - this is the ONLY component allowed to call login/refresh/logout on the
server and to write the token store. Everything else (request coordinator, UI) goes
through here.

Session state is a single slot: Empty or Present(Token).
    login ok          Empty   -> Present
    refresh ok        Present -> Present (brand-new Token, old one dropped)
    logout / forced   Present -> Empty

Logout is LOCAL-FIRST in effect: the server notification is best effort, the local delete
happens no matter what (offline, timeout, 500...).
"""

import logging
from collections.abc import Callable
from typing import Any

from macrotrack.application.services.logout_signal import LogoutListener, LogoutSignal
from macrotrack.domain.exceptions import ApiError
from macrotrack.domain.ports import ITokenStore
from macrotrack.domain.value_objects import Token
from macrotrack.infrastructure.integrations.auth_api_client import AuthApiClient

logger = logging.getLogger(__name__)


class AuthSessionManager:
    """Login/refresh/logout plus the forced-logout signal."""

    def __init__(
        self,
        api: AuthApiClient,
        token_store: ITokenStore,
        logout_signal: LogoutSignal | None = None,
    ) -> None:
        self._api = api
        self._token_store = token_store
        self._logout_signal = logout_signal or LogoutSignal()

    @property
    def logout_signal(self) -> LogoutSignal:
        return self._logout_signal

    async def current_token(self) -> Token | None:
        """Token of the current session, or None when logged out."""
        return await self._token_store.get()

    async def is_logged_in(self) -> bool:
        return await self.current_token() is not None

    async def login(self, identifier: str, secret: str) -> Token:
        """Exchange credentials for a Token and start the session.

        Raises:
            AuthenticationFailedError: Wrong credentials (server reason as message)
            NetworkError: Transport failure
        """
        token = await self._api.login(identifier, secret)
        await self._token_store.save(token)
        logger.info("Login succeeded")
        return token

    async def refresh(self, refresh_token: str) -> Token | None:
        """Exchange a refresh token for a new pair. Does NOT persist it.

        Returns:
            New Token, or None when the server rejected the refresh token

        Raises:
            NetworkError: Transport failure (treat as "session is over")
        """
        return await self._api.refresh(refresh_token)

    async def store_refreshed(self, token: Token) -> None:
        """Persist the winner of a refresh cycle."""
        await self._token_store.save(token)

    async def logout(self) -> None:
        """Notify the server (best effort), then always clear local credentials."""
        try:
            token = await self._token_store.get()
            if token is not None:
                try:
                    await self._api.logout(token.access_token)
                except ApiError as e:
                    logger.warning(
                        "Server logout failed (status=%s), clearing local session anyway: %s",
                        e.status_code,
                        e.message,
                    )
        finally:
            await self._token_store.delete()
        logger.info("Logged out")

    def register_logout_listener(self, listener: LogoutListener) -> Callable[[], None]:
        """Subscribe to forced logouts. Returns the unsubscribe function."""
        return self._logout_signal.subscribe(listener)

    # Forced logout: listeners FIRST (they may still want to read who was logged in), then the
    # slot is cleared. No network call here - the server already told us the session is dead.
    async def trigger_logout(self, reason: str = "session_expired") -> None:
        """Notify logout listeners, then clear the session."""
        logger.info(
            "Forced logout (reason=%s, listeners=%d)",
            reason,
            self._logout_signal.listener_count,
        )
        try:
            await self._logout_signal.emit(reason)
        finally:
            await self._token_store.delete()

    async def register(self, email: str, password: str) -> Any:
        """Create an account (does not log in)."""
        return await self._api.register(email, password)

    async def request_password_reset(self, email: str) -> Any:
        """Request a password reset email."""
        return await self._api.request_password_reset(email)
