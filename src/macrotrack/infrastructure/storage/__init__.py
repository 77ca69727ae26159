"""Credential persistence: token store, storage backends, backend selection."""

from macrotrack.infrastructure.storage.backends import (
    EncryptedFileBackend,
    MemoryBackend,
    PlainFileBackend,
    select_token_backend,
)
from macrotrack.infrastructure.storage.token_store import TOKEN_KEY, TokenStore

__all__ = [
    "EncryptedFileBackend",
    "MemoryBackend",
    "PlainFileBackend",
    "TOKEN_KEY",
    "TokenStore",
    "select_token_backend",
]
