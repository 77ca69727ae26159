"""Request coordinator - every backend call goes through here.

Hey future me - this is the HEART of the client! It attaches auth/platform headers, sends the
request through the shared pool, maps the response to payload-or-error, and on a 401 runs the
single-flight token refresh.

Single-flight refresh, in short:
    1. A 401 on an authenticated call parks the request in the pending queue.
    2. If no refresh is running, the state flips to REFRESH_IN_FLIGHT and ONE background task
       refreshes. Everyone else who hits a 401 meanwhile just parks and waits.
    3. Refresh ok   -> the stored token is replaced, every parked request is replayed ONCE
                       with the new Authorization header (no second refresh from a replay).
       Refresh fail -> forced logout fires ONCE, then every parked request gets
                       SessionExpiredError.
    4. Queue drained and state back to IDLE in the same tick, so the next 401 starts a new cycle.

The check of the state and the flip MUST happen without an await in between - asyncio only
switches tasks at awaits, which is what makes this race-free without a lock.

The refresh runs in its own task: if the caller that triggered it gets cancelled, the other
parked callers still get their answer. If the refresh task itself gets cancelled, every parked
caller gets SessionExpiredError and the state is back to IDLE.

A 401 that shows up while the forced logout runs (a logout listener making a call, say) or
that carries a token we already logged out for is answered with SessionExpiredError right
away. No second refresh, no second logout.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import httpx

from macrotrack.application.services.auth_session_manager import AuthSessionManager
from macrotrack.config.settings import ApiSettings
from macrotrack.domain.exceptions import (
    AuthenticationFailedError,
    NetworkError,
    SessionExpiredError,
)
from macrotrack.domain.value_objects import Token
from macrotrack.infrastructure.integrations.client_id import ClientIdProvider
from macrotrack.infrastructure.integrations.http_pool import HttpClientPool
from macrotrack.infrastructure.integrations.response_handling import (
    correlation_id_from,
    handle_response,
    network_error_from,
)
from macrotrack.infrastructure.observability import (
    CORRELATION_HEADER,
    get_correlation_id,
    log_operation,
    log_slow_operation,
)

logger = logging.getLogger(__name__)

NO_CREDENTIALS_MESSAGE = "You are not logged in. Please log in to continue."


class RefreshState(str, Enum):
    """Refresh lifecycle of the coordinator."""

    IDLE = "idle"
    REFRESH_IN_FLIGHT = "refresh_in_flight"


@dataclass(frozen=True)
class RequestOptions:
    """Everything needed to (re)send a request, minus auth."""

    method: str = "GET"
    json: Any = None
    params: dict[str, Any] | None = None
    data: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    timeout: float | None = None


@dataclass(eq=False)
class PendingRequest:
    """A request parked while the token is being refreshed."""

    endpoint: str
    options: RequestOptions
    needs_auth: bool
    future: asyncio.Future[Any] = field(repr=False)


@dataclass(frozen=True)
class ReplayPlan:
    """Snapshot of one flush: the token used and the requests replayed with it."""

    token: Token
    entries: tuple[PendingRequest, ...]

    @property
    def endpoints(self) -> list[str]:
        return [entry.endpoint for entry in self.entries]


class RequestCoordinator:
    """Authenticated request dispatch with single-flight token refresh."""

    def __init__(
        self,
        pool: HttpClientPool,
        session: AuthSessionManager,
        client_ids: ClientIdProvider | None = None,
        settings: ApiSettings | None = None,
    ) -> None:
        self._pool = pool
        self._session = session
        self._client_ids = client_ids
        self._settings = settings or pool.settings
        self._state = RefreshState.IDLE
        self._pending: list[PendingRequest] = []
        self._background_tasks: set[asyncio.Task[None]] = set()
        # Access tokens a forced logout already fired for. A late 401 on one of them belongs to
        # that episode and must not start a refresh (or a logout) of its own.
        self._revoked_tokens: set[str] = set()
        self._logout_in_progress = False
        self.last_replay: ReplayPlan | None = None
        self.refresh_attempts = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def request(
        self,
        endpoint: str,
        options: RequestOptions | None = None,
        needs_auth: bool = True,
    ) -> Any:
        """Send a request and return its payload.

        Args:
            endpoint: Path relative to the API base URL (e.g. "/users/status")
            options: Method, body, query, extra headers, timeout
            needs_auth: Attach the bearer token and take part in refresh handling

        Returns:
            Parsed JSON, response text, or None for empty/204 responses

        Raises:
            AuthenticationFailedError: No session, or the server rejected the credentials
            SessionExpiredError: The token could not be refreshed (user was logged out)
            BackendError: Any other non-2xx (subclass picked by status)
            NetworkError: Transport failure or timeout
        """
        options = options or RequestOptions()
        token: Token | None = None
        if needs_auth:
            token = await self._session.current_token()
            if token is None and self._logout_in_progress:
                # The running forced logout already covers this caller.
                raise SessionExpiredError()
            if token is None:
                logger.info("Authenticated call to %s without a session", endpoint)
                await self._session.trigger_logout("no_credentials")
                raise AuthenticationFailedError(NO_CREDENTIALS_MESSAGE)

        response = await self._send(endpoint, options, token)
        if response.status_code == 401 and token is not None:
            return await self._wait_for_refresh(endpoint, options, token)
        return handle_response(response)

    async def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        needs_auth: bool = True,
    ) -> Any:
        return await self.request(endpoint, RequestOptions("GET", params=params), needs_auth)

    async def post(
        self,
        endpoint: str,
        json: Any = None,
        needs_auth: bool = True,
        timeout: float | None = None,
    ) -> Any:
        return await self.request(
            endpoint, RequestOptions("POST", json=json, timeout=timeout), needs_auth
        )

    async def delete(self, endpoint: str, needs_auth: bool = True) -> Any:
        return await self.request(endpoint, RequestOptions("DELETE"), needs_auth)

    async def wait_idle(self) -> None:
        """Wait for any running refresh cycle (and its replays) to finish.

        Cancelling the waiter leaves the refresh running - asyncio.wait doesn't cancel what it
        waits on (gather would).
        """
        while self._background_tasks:
            await asyncio.wait(set(self._background_tasks))

    async def _headers(self, options: RequestOptions, token: Token | None) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "X-Platform": self._settings.platform,
            "Accept-Language": self._settings.locale,
        }
        # httpx sets the form content type itself when data= is used.
        if options.data is None:
            headers["Content-Type"] = "application/json"
        if self._client_ids is not None:
            headers["X-Client-ID"] = await self._client_ids.get_client_id()
        correlation_id = get_correlation_id()
        if correlation_id:
            headers[CORRELATION_HEADER] = correlation_id
        if options.headers:
            headers.update(options.headers)
        if token is not None:
            headers["Authorization"] = token.authorization_header
        return headers

    async def _send(
        self,
        endpoint: str,
        options: RequestOptions,
        token: Token | None,
    ) -> httpx.Response:
        client = await self._pool.get_client()
        headers = await self._headers(options, token)
        timeout: Any = options.timeout if options.timeout is not None else httpx.USE_CLIENT_DEFAULT
        start = time.monotonic()
        try:
            response = await client.request(
                options.method,
                endpoint,
                json=options.json,
                params=options.params,
                data=options.data,
                headers=headers,
                timeout=timeout,
            )
        except httpx.RequestError as e:
            logger.warning("%s %s failed at transport level: %s", options.method, endpoint, e)
            raise network_error_from(e) from e

        duration_ms = int((time.monotonic() - start) * 1000)
        log_slow_operation(
            logger,
            "api_request",
            duration_ms,
            threshold_ms=self._settings.slow_request_threshold_ms,
            endpoint=endpoint,
            method=options.method,
        )
        logger.debug(
            "%s %s -> %d (correlation_id=%s)",
            options.method,
            endpoint,
            response.status_code,
            correlation_id_from(response),
        )
        return response

    # Yo, NO await between the state check and the flip/append below! That's the whole
    # single-flight guarantee.
    async def _wait_for_refresh(
        self,
        endpoint: str,
        options: RequestOptions,
        stale_token: Token,
    ) -> Any:
        if self._logout_in_progress or stale_token.access_token in self._revoked_tokens:
            # Same failure episode as the logout that is running (or already ran) - parking here
            # would either start a second refresh or wait on the very logout that sent us.
            logger.debug("401 on %s belongs to an expired session, not refreshing", endpoint)
            raise SessionExpiredError()

        entry = PendingRequest(
            endpoint=endpoint,
            options=options,
            needs_auth=True,
            future=asyncio.get_running_loop().create_future(),
        )
        self._pending.append(entry)
        if self._state is RefreshState.IDLE:
            self._state = RefreshState.REFRESH_IN_FLIGHT
            logger.info("Access token rejected on %s, starting token refresh", endpoint)
            task = asyncio.create_task(
                self._refresh_and_flush(stale_token), name="macrotrack-token-refresh"
            )
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)
        else:
            logger.debug(
                "Refresh already in flight, queued %s (pending=%d)", endpoint, len(self._pending)
            )
        return await entry.future

    def _take_batch(self) -> list[PendingRequest]:
        # Same tick: take the batch and reopen for the next cycle.
        batch, self._pending = self._pending, []
        self._state = RefreshState.IDLE
        return batch

    async def _refresh_and_flush(self, stale_token: Token) -> None:
        try:
            try:
                new_token = await self._obtain_fresh_token(stale_token)
            except Exception as e:
                logger.warning("Token refresh failed: %s: %s", type(e).__name__, e)
                await self._fail_pending(stale_token, e)
                return

            if new_token is None:
                await self._fail_pending(stale_token, None)
            else:
                await self._replay_batch(self._take_batch(), stale_token, new_token)
        finally:
            # Only non-empty when the cycle itself got cancelled. Nobody may stay parked and
            # the next 401 has to be able to start a fresh cycle.
            if self._pending or self._state is not RefreshState.IDLE:
                stranded = self._take_batch()
                self._reject(stranded, None)
                logger.warning(
                    "Token refresh was cancelled, rejected %d pending request(s)", len(stranded)
                )

    async def _obtain_fresh_token(self, stale_token: Token) -> Token | None:
        current = await self._session.current_token()
        if current is None:
            logger.info("Session was cleared while the request was in flight, not refreshing")
            return None
        if current.access_token != stale_token.access_token:
            logger.info("Access token already replaced, replaying without a new refresh")
            return current
        if not current.refresh_token:
            logger.info("No refresh token stored, session cannot be renewed")
            return None

        self.refresh_attempts += 1
        async with log_operation(logger, "token_refresh"):
            token = await asyncio.wait_for(
                self._session.refresh(current.refresh_token),
                timeout=self._settings.refresh_timeout,
            )
        if token is None:
            return None
        await self._session.store_refreshed(token)
        return token

    async def _forced_logout(self, reason: str, *tokens: Token) -> None:
        self._revoked_tokens.update(token.access_token for token in tokens)
        self._logout_in_progress = True
        try:
            await self._session.trigger_logout(reason)
        except Exception:
            logger.exception("Forced logout (reason=%s) did not complete", reason)
        finally:
            self._logout_in_progress = False

    async def _fail_pending(self, stale_token: Token, cause: Exception | None) -> None:
        # The state stays REFRESH_IN_FLIGHT until the logout is done, so a 401 arriving
        # meanwhile joins this batch instead of opening a second cycle.
        await self._forced_logout("refresh_failed", stale_token)
        batch = self._take_batch()
        self._reject(batch, cause)
        logger.info("Rejected %d pending request(s) after failed refresh", len(batch))

    @staticmethod
    def _reject(batch: list[PendingRequest], cause: BaseException | None) -> None:
        for entry in batch:
            if entry.future.done():
                continue
            error = SessionExpiredError()
            if cause is not None:
                error.__cause__ = cause
            entry.future.set_exception(error)

    async def _replay_batch(
        self, batch: list[PendingRequest], stale_token: Token, token: Token
    ) -> None:
        self.last_replay = ReplayPlan(token=token, entries=tuple(batch))
        live = [entry for entry in batch if not entry.future.done()]
        logger.info("Replaying %d request(s) with refreshed token", len(live))

        try:
            results = await asyncio.gather(
                *(self._replay(entry, token) for entry in live), return_exceptions=True
            )
        except asyncio.CancelledError:
            for entry in live:
                if not entry.future.done():
                    entry.future.set_exception(
                        NetworkError("The request was interrupted. Please try again.")
                    )
            raise

        session_lost = any(isinstance(result, AuthenticationFailedError) for result in results)
        if session_lost:
            await self._forced_logout("replay_rejected", stale_token, token)

        for entry, result in zip(live, results, strict=True):
            if entry.future.done():
                continue
            if isinstance(result, asyncio.CancelledError):
                entry.future.cancel()
            elif isinstance(result, BaseException):
                entry.future.set_exception(result)
            else:
                entry.future.set_result(result)

    # Replays never re-enter the refresh path: a 401 here is final.
    async def _replay(self, entry: PendingRequest, token: Token) -> Any:
        response = await self._send(entry.endpoint, entry.options, token)
        return handle_response(response)
