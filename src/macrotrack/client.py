"""MacroTrackClient - composition root of the client.

Hey future me - this is where everything gets wired together ONCE:

    settings -> HttpClientPool (shared httpx.AsyncClient)
             -> TokenStore(select_token_backend(settings.token_storage))
             -> AuthApiClient -> AuthSessionManager (+ LogoutSignal)
             -> RequestCoordinator -> BackendService

Usage:
    async with MacroTrackClient(settings) as client:
        client.session.register_logout_listener(show_login_screen)
        await client.session.login("me@example.com", "secret")
        status = await client.backend.get_user_status()

Tests pass transport=httpx.MockTransport(...) to keep everything off the network.
"""

import logging
from types import TracebackType

import httpx

from macrotrack.application.services.auth_session_manager import AuthSessionManager
from macrotrack.application.services.backend_service import BackendService
from macrotrack.application.services.logout_signal import LogoutSignal
from macrotrack.application.services.request_coordinator import RequestCoordinator
from macrotrack.config.settings import Settings, TokenStorageMode, get_settings
from macrotrack.domain.ports import ITokenStore
from macrotrack.infrastructure.integrations import (
    AuthApiClient,
    ClientIdProvider,
    HttpClientPool,
)
from macrotrack.infrastructure.observability import configure_logging
from macrotrack.infrastructure.storage import TokenStore, select_token_backend

logger = logging.getLogger(__name__)


class MacroTrackClient:
    """Builds and owns the client's components."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        token_store: ITokenStore | None = None,
        configure_logs: bool = False,
    ) -> None:
        self.settings = settings or get_settings()
        if configure_logs:
            configure_logging(
                self.settings.observability.log_level,
                json_format=self.settings.observability.json_logs,
            )

        if token_store is None:
            backend = select_token_backend(self.settings.token_storage)
            if self.settings.token_storage.mode is TokenStorageMode.PLAIN:
                logger.warning(
                    "Auth tokens are stored UNENCRYPTED at %s - use secure mode outside development",
                    self.settings.token_storage.path,
                )
            token_store = TokenStore(backend)
        self.token_store = token_store

        api = self.settings.api
        self.pool = HttpClientPool(api, transport=transport)
        self.client_ids = ClientIdProvider(self.settings.client_id_path)
        self.logout_signal = LogoutSignal()
        self.auth_api = AuthApiClient(
            self.pool, platform=api.platform, refresh_timeout=api.refresh_timeout
        )
        self.session = AuthSessionManager(self.auth_api, self.token_store, self.logout_signal)
        self.coordinator = RequestCoordinator(self.pool, self.session, self.client_ids, api)
        self.backend = BackendService(self.coordinator)

    async def close(self) -> None:
        """Let a running refresh cycle settle, then release HTTP connections."""
        await self.coordinator.wait_idle()
        await self.pool.close()

    async def __aenter__(self) -> "MacroTrackClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
