"""HTTP client for the backend's /auth endpoints.

Hey future me - this is the LOW-LEVEL half of auth, same split as a provider client vs. its
auth service: this class only speaks HTTP and maps responses to Token/errors. It NEVER
touches the token store - AuthSessionManager decides what gets persisted.

Endpoints (all relative to <base_url>/api/v1):
    POST /auth/login                   form: username, password -> Token
    POST /auth/refresh-token           json: refresh_token      -> Token
    POST /auth/logout                  bearer                   -> 204
    POST /auth/register                json: email, password
    POST /auth/request-password-reset  json: email
"""

import logging
from typing import Any

import httpx

from macrotrack.domain.exceptions import AuthenticationFailedError, BackendError
from macrotrack.domain.value_objects import Token
from macrotrack.infrastructure.integrations.http_pool import HttpClientPool
from macrotrack.infrastructure.integrations.response_handling import (
    correlation_id_from,
    error_from_response,
    handle_response,
    network_error_from,
)
from macrotrack.infrastructure.observability.logging import (
    CORRELATION_HEADER,
    get_correlation_id,
)

logger = logging.getLogger(__name__)

# Statuses the backend uses for "these credentials are wrong".
LOGIN_REJECTED_STATUSES = frozenset({400, 401, 403})


class AuthApiClient:
    """Raw calls against the authentication endpoints."""

    LOGIN_PATH = "/auth/login"
    REFRESH_PATH = "/auth/refresh-token"  # nosec B105 - endpoint path, not a password
    LOGOUT_PATH = "/auth/logout"
    REGISTER_PATH = "/auth/register"
    PASSWORD_RESET_PATH = "/auth/request-password-reset"  # nosec B105

    def __init__(
        self,
        pool: HttpClientPool,
        platform: str = "python",
        refresh_timeout: float | None = None,
    ) -> None:
        self._pool = pool
        self._platform = platform
        self._refresh_timeout = refresh_timeout

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"Accept": "application/json", "X-Platform": self._platform}
        correlation_id = get_correlation_id()
        if correlation_id:
            headers[CORRELATION_HEADER] = correlation_id
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    # Every auth call funnels through here so transport failures are mapped in ONE place.
    async def _post(
        self,
        path: str,
        *,
        json: Any = None,
        data: dict[str, str] | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        client = await self._pool.get_client()
        request_timeout: Any = timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT
        try:
            return await client.post(
                path,
                json=json,
                data=data,
                headers=self._headers(access_token),
                timeout=request_timeout,
            )
        except httpx.RequestError as e:
            logger.warning("Auth request %s failed at transport level: %s", path, e)
            raise network_error_from(e) from e

    async def login(self, identifier: str, secret: str) -> Token:
        """Exchange username/password for a Token.

        Raises:
            AuthenticationFailedError: Server rejected the credentials (server reason as message)
            ValidationError: Malformed request (422)
            BackendError: Any other non-2xx
            NetworkError: Transport failure
        """
        response = await self._post(
            self.LOGIN_PATH, data={"username": identifier, "password": secret}
        )
        if response.status_code in LOGIN_REJECTED_STATUSES:
            error = error_from_response(response)
            detail = error.detail if isinstance(error.detail, str) else None
            raise AuthenticationFailedError(
                detail or "Incorrect email or password.",
                status_code=response.status_code,
                detail=error.detail,
                correlation_id=error.correlation_id,
            )
        payload = handle_response(response)
        try:
            return Token.from_response(payload)
        except ValueError as e:
            raise BackendError(
                "The server returned an invalid login response.",
                status_code=response.status_code,
                correlation_id=correlation_id_from(response),
            ) from e

    # Hey future me - a rejected refresh is NOT an error, it's the normal "session is over"
    # signal. Any non-2xx (or a garbage body) -> None and the coordinator forces logout.
    # Only transport failures raise (NetworkError), and the caller treats those the same way.
    async def refresh(self, refresh_token: str) -> Token | None:
        """Exchange a refresh token for a new Token pair.

        Returns:
            New Token, or None if the server rejected the refresh token

        Raises:
            NetworkError: Transport failure or timeout
        """
        response = await self._post(
            self.REFRESH_PATH,
            json={"refresh_token": refresh_token},
            timeout=self._refresh_timeout,
        )
        if not response.is_success:
            logger.info(
                "Refresh token rejected (status=%d, correlation_id=%s)",
                response.status_code,
                correlation_id_from(response),
            )
            return None
        try:
            return Token.from_response(response.json())
        except ValueError as e:
            logger.warning("Refresh response was not a valid token payload: %s", e)
            return None

    async def logout(self, access_token: str) -> None:
        """Tell the server to invalidate the session.

        Raises:
            BackendError: Non-2xx response
            NetworkError: Transport failure
        """
        response = await self._post(self.LOGOUT_PATH, access_token=access_token)
        handle_response(response)

    async def register(self, email: str, password: str) -> Any:
        """Create an account. Returns the server payload."""
        response = await self._post(
            self.REGISTER_PATH, json={"email": email, "password": password}
        )
        return handle_response(response)

    async def request_password_reset(self, email: str) -> Any:
        """Ask the server to email a password reset link."""
        response = await self._post(self.PASSWORD_RESET_PATH, json={"email": email})
        return handle_response(response)
