"""Shared HTTP client pool for connection reuse across the client.

Hey future me - this is the CENTRAL http client! The request coordinator and the auth API
client MUST talk through the same httpx.AsyncClient so they share keep-alive connections and
the same base URL/timeout config. One pool per MacroTrackClient (not a process global) so
tests can spin up independent clients side by side.

Usage:
    pool = HttpClientPool(settings.api)
    client = await pool.get_client()
    response = await client.get("/users/status")
    ...
    await pool.close()  # at shutdown (MacroTrackClient.__aexit__ does this)
"""

import asyncio
import logging
from typing import ClassVar

import httpx

from macrotrack.config.settings import ApiSettings

logger = logging.getLogger(__name__)


class HttpClientPool:
    """Lazily created, shared httpx.AsyncClient.

    Features:
    - Lazy initialization (created on first use, inside the running loop)
    - Safe concurrent first use via asyncio.Lock
    - Optional transport injection (httpx.MockTransport in tests)
    - Single cleanup point
    """

    # If you hit backend rate limits, LOWER max_connections. If requests queue up, RAISE it.
    DEFAULT_MAX_KEEPALIVE: ClassVar[int] = 10
    DEFAULT_MAX_CONNECTIONS: ClassVar[int] = 20

    def __init__(
        self,
        settings: ApiSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._lock: asyncio.Lock | None = None

    # Lazy because asyncio.Lock() wants to be created where the loop lives. Creating it in
    # __init__ breaks when the pool is built before the loop starts (e.g. at import time).
    def _ensure_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def get_client(self) -> httpx.AsyncClient:
        """Get the shared HTTP client instance, creating it on first call."""
        if self._client is not None:
            return self._client

        async with self._ensure_lock():
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.settings.base_url,
                    timeout=httpx.Timeout(self.settings.timeout),
                    limits=httpx.Limits(
                        max_keepalive_connections=self.DEFAULT_MAX_KEEPALIVE,
                        max_connections=self.DEFAULT_MAX_CONNECTIONS,
                    ),
                    transport=self._transport,
                )
                logger.info(
                    "HTTP client pool initialized (base_url=%s, timeout=%.1fs, max_conn=%d)",
                    self.settings.base_url,
                    self.settings.timeout,
                    self.DEFAULT_MAX_CONNECTIONS,
                )
            return self._client

    async def close(self) -> None:
        """Close the shared HTTP client and release all connections.

        After close(), get_client() creates a fresh client.
        """
        async with self._ensure_lock():
            if self._client is not None:
                await self._client.aclose()
                self._client = None
                logger.info("HTTP client pool closed")

    def is_initialized(self) -> bool:
        """Check if the client has been created."""
        return self._client is not None
