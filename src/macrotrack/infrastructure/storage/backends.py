"""Token storage backends.

Hey future me - three strategies, ONE slot each:

- EncryptedFileBackend: Fernet-encrypted file. This is the "secure store" for release
  builds. A file we can't decrypt (wrong key, truncated, tampered) is treated as
  corrupted -> ValueError -> TokenStore deletes it.
- PlainFileBackend: same file handling, no encryption. Dev only!
- MemoryBackend: dict in process memory. Tests and throwaway sessions.

Which one runs is decided by select_token_backend() from the injected settings - no
environment sniffing, no module-level caching. Same settings in, same backend type out.
"""

import os
import tempfile
from pathlib import Path

from cryptography.fernet import Fernet, InvalidToken

from macrotrack.config.settings import TokenStorageMode, TokenStorageSettings
from macrotrack.domain.exceptions import ConfigurationError
from macrotrack.domain.ports import ITokenStorageBackend
from macrotrack.infrastructure.storage.token_store import TOKEN_KEY


# Write-to-temp + os.replace is atomic on POSIX and Windows (same filesystem). The temp file
# MUST live in the target directory, otherwise os.replace crosses devices and fails (EXDEV).
def _atomic_write_bytes(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_name, 0o600)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class MemoryBackend(ITokenStorageBackend):
    """In-process storage. Nothing survives a restart."""

    name = "memory"

    def __init__(self, key: str = TOKEN_KEY) -> None:
        self._key = key
        self._values: dict[str, str] = {}

    def read(self) -> str | None:
        return self._values.get(self._key)

    def write(self, value: str) -> None:
        self._values[self._key] = value

    def remove(self) -> None:
        self._values.pop(self._key, None)


class PlainFileBackend(ITokenStorageBackend):
    """Unencrypted single-file storage (development)."""

    name = "plain"

    def __init__(self, path: Path) -> None:
        self.path = Path(path).expanduser()

    def _read_bytes(self) -> bytes | None:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def read(self) -> str | None:
        data = self._read_bytes()
        if data is None:
            return None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValueError(f"Token file {self.path} is not valid UTF-8") from e

    def write(self, value: str) -> None:
        _atomic_write_bytes(self.path, value.encode("utf-8"))

    def remove(self) -> None:
        self.path.unlink(missing_ok=True)


class EncryptedFileBackend(PlainFileBackend):
    """Fernet-encrypted single-file storage (release)."""

    name = "secure"

    def __init__(self, path: Path, key: str | bytes) -> None:
        super().__init__(path)
        try:
            self._cipher = Fernet(key)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                "Invalid token encryption key - expected a urlsafe base64 Fernet key"
            ) from e

    def read(self) -> str | None:
        data = self._read_bytes()
        if data is None:
            return None
        try:
            return self._cipher.decrypt(data).decode("utf-8")
        except (InvalidToken, UnicodeDecodeError) as e:
            raise ValueError(f"Token file {self.path} could not be decrypted") from e

    def write(self, value: str) -> None:
        _atomic_write_bytes(self.path, self._cipher.encrypt(value.encode("utf-8")))


def select_token_backend(settings: TokenStorageSettings) -> ITokenStorageBackend:
    """Build the storage backend for the configured mode.

    Pure function of settings - call it once at startup and inject the result.

    Raises:
        ConfigurationError: If secure mode is selected without an encryption key
    """
    if settings.mode is TokenStorageMode.SECURE:
        if settings.encryption_key is None:
            raise ConfigurationError(
                "Secure token storage requires token_storage.encryption_key"
            )
        return EncryptedFileBackend(
            settings.path, settings.encryption_key.get_secret_value()
        )
    if settings.mode is TokenStorageMode.PLAIN:
        return PlainFileBackend(settings.path)
    return MemoryBackend()
