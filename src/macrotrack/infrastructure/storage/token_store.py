"""Token store - durable persistence of the one credential pair.

Hey future me - the ONE rule that matters here: a corrupted stored value must never wedge
the session. If get() finds something it can't decode, it DELETES it and returns None, so
the user simply lands on the login screen instead of crashing on every start.
"""

import asyncio
import logging

from macrotrack.domain.ports import ITokenStorageBackend, ITokenStore
from macrotrack.domain.value_objects import Token

logger = logging.getLogger(__name__)

# Single well-known key for the serialized token (memory backend slot name).
TOKEN_KEY = "macrotrack:auth_token"


class TokenStore(ITokenStore):
    """Serializes Token values into a single storage backend slot.

    Backend I/O is blocking (files), so every call runs in a worker thread via
    asyncio.to_thread to keep the event loop free.
    """

    def __init__(self, backend: ITokenStorageBackend) -> None:
        self._backend = backend

    @property
    def backend(self) -> ITokenStorageBackend:
        return self._backend

    async def save(self, token: Token) -> None:
        """Persist token, overwriting any previous value."""
        await asyncio.to_thread(self._backend.write, token.to_json())
        logger.debug("Token saved (backend=%s)", self._backend.name)

    async def get(self) -> Token | None:
        """Return the stored token or None; corrupted values are deleted."""
        try:
            raw = await asyncio.to_thread(self._backend.read)
            if not raw:
                return None
            return Token.from_json(raw)
        except ValueError as e:
            logger.warning(
                "Stored auth token is corrupted, clearing it (backend=%s): %s",
                self._backend.name,
                e,
            )
            await self.delete()
            return None

    async def delete(self) -> None:
        """Remove the stored token. Safe to call when nothing is stored."""
        await asyncio.to_thread(self._backend.remove)
        logger.debug("Token deleted (backend=%s)", self._backend.name)
