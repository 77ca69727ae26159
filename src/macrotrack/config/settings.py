"""Application settings loaded from environment variables.

Hey future me - every knob of the client lives here! Values come from env vars
with the MACROTRACK_ prefix; nested sections use a double underscore:

    MACROTRACK_API__BASE_URL=https://api.macrotracker.app
    MACROTRACK_TOKEN_STORAGE__MODE=secure
    MACROTRACK_TOKEN_STORAGE__ENCRYPTION_KEY=<fernet key>
    MACROTRACK_OBSERVABILITY__LOG_LEVEL=DEBUG

Tests should build Settings(...) directly instead of touching the environment.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

API_PREFIX = "/api/v1"


class ApiSettings(BaseModel):
    """Backend API connection settings."""

    base_url: str = Field(
        default="http://localhost:8000",
        description="Backend root URL; normalized to end with /api/v1",
    )
    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout (seconds)")
    refresh_timeout: float = Field(
        default=15.0,
        gt=0,
        description="Upper bound for the single token refresh attempt (seconds)",
    )
    platform: str = Field(default="python", description="Value of the X-Platform header")
    locale: str = Field(default="en", description="Value of the Accept-Language header")
    slow_request_threshold_ms: int = Field(default=5000, ge=0)

    # Hey future me - the backend mounts everything under /api/v1. Users configure the bare
    # host ("https://api.example.com" or with a trailing slash) so we append the prefix here
    # once instead of string-gluing it in every client.
    @field_validator("base_url")
    @classmethod
    def normalize_base_url(cls, value: str) -> str:
        """Strip trailing slashes and make sure the URL ends with /api/v1."""
        url = value.strip().rstrip("/")
        if not url:
            raise ValueError("base_url must not be empty")
        if not url.endswith(API_PREFIX):
            url = f"{url}{API_PREFIX}"
        return url


class TokenStorageMode(str, Enum):
    """Where the credential pair is persisted.

    - SECURE: Fernet-encrypted file (release builds)
    - PLAIN: unencrypted JSON file (local development)
    - MEMORY: process memory only (tests, throwaway sessions)
    """

    SECURE = "secure"
    PLAIN = "plain"
    MEMORY = "memory"


class TokenStorageSettings(BaseModel):
    """Token persistence settings."""

    mode: TokenStorageMode = TokenStorageMode.MEMORY
    path: Path = Field(default=Path("~/.macrotrack/auth_token"))
    encryption_key: SecretStr | None = Field(
        default=None,
        description="urlsafe-base64 Fernet key, required for secure mode",
    )


class ObservabilitySettings(BaseModel):
    """Logging settings."""

    log_level: str = "INFO"
    json_logs: bool = False

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept only standard logging level names."""
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level


class Settings(BaseSettings):
    """Root settings object."""

    model_config = SettingsConfigDict(
        env_prefix="MACROTRACK_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api: ApiSettings = Field(default_factory=ApiSettings)
    token_storage: TokenStorageSettings = Field(default_factory=TokenStorageSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)
    client_id_path: Path | None = Field(
        default=None,
        description="File holding the per-install client id; None keeps it in memory",
    )


# Cached so the env is parsed once per process. Call get_settings.cache_clear() in tests
# that tweak env vars.
@lru_cache
def get_settings() -> Settings:
    """Get application settings (cached)."""
    return Settings()
