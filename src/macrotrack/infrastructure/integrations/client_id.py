"""Per-install client identifier sent as X-Client-ID.

The backend uses it to tie guest usage (no account yet) to one installation. Generated
once, then reused forever - unless storage fails, in which case we hand out an ephemeral
id rather than block the request.
"""

import asyncio
import logging
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


class ClientIdProvider:
    """Loads, creates and caches the installation's client id."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path).expanduser() if path is not None else None
        self._client_id: str | None = None
        self._lock: asyncio.Lock | None = None

    def _load_or_create(self) -> str:
        if self.path is not None and self.path.exists():
            stored = self.path.read_text(encoding="utf-8").strip()
            if stored:
                logger.debug("Retrieved existing client ID")
                return stored

        client_id = str(uuid.uuid4())
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(client_id, encoding="utf-8")
        logger.info("Generated new client ID")
        return client_id

    # Lazy for the same reason as in HttpClientPool: the lock must be created on the running loop.
    def _ensure_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def get_client_id(self) -> str:
        """Return the cached id, loading or creating it on first use."""
        if self._client_id is not None:
            return self._client_id

        # Concurrent first requests would otherwise each generate (and write) their own id.
        async with self._ensure_lock():
            if self._client_id is not None:
                return self._client_id
            try:
                self._client_id = await asyncio.to_thread(self._load_or_create)
            except OSError as e:
                # Not cached - the next call tries the disk again.
                logger.error("Could not read or persist client ID, using a temporary one: %s", e)
                return str(uuid.uuid4())
            return self._client_id

    async def clear(self) -> None:
        """Forget the id (memory and disk). The next call generates a new one."""
        async with self._ensure_lock():
            self._client_id = None
            if self.path is not None:
                await asyncio.to_thread(self.path.unlink, True)
