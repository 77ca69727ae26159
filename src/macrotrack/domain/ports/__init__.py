"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod

from macrotrack.domain.value_objects import Token


# Hey future me, ITokenStorageBackend is the RAW storage strategy - it only moves one string
# in and out of a single well-known slot (encrypted file, plain file, memory). It knows NOTHING
# about Token or JSON. Methods are SYNC: TokenStore runs them in a worker thread,
# so backends stay trivial to write and to test. write() must be atomic - a reader never sees
# half a value - and remove() must not fail when the slot is already empty.
class ITokenStorageBackend(ABC):
    """Single-slot string storage used by the token store."""

    name: str = "backend"

    @abstractmethod
    def read(self) -> str | None:
        """Return the stored value, or None if the slot is empty.

        Raises:
            ValueError: If a value exists but cannot be decoded (corrupted)
        """
        pass

    @abstractmethod
    def write(self, value: str) -> None:
        """Atomically replace the stored value."""
        pass

    @abstractmethod
    def remove(self) -> None:
        """Clear the slot. Idempotent."""
        pass


# Listen, ITokenStore is what the auth layer talks to. It owns (de)serialization and the
# "corrupted value self-heals" rule. Only AuthSessionManager writes through it!
class ITokenStore(ABC):
    """Durable persistence of exactly one credential pair."""

    @abstractmethod
    async def save(self, token: Token) -> None:
        """Persist token, overwriting any previous value."""
        pass

    @abstractmethod
    async def get(self) -> Token | None:
        """Return the stored token, or None if absent or corrupted."""
        pass

    @abstractmethod
    async def delete(self) -> None:
        """Remove the stored token. Idempotent."""
        pass


__all__ = ["ITokenStorageBackend", "ITokenStore"]
