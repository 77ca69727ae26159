"""Shared test fixtures."""

import pytest

from macrotrack.config.settings import ApiSettings, Settings
from macrotrack.domain.value_objects import Token
from macrotrack.infrastructure.observability.logging import correlation_id_var
from macrotrack.infrastructure.storage import MemoryBackend, TokenStore


@pytest.fixture(autouse=True)
def reset_correlation_id():
    """Keep correlation ids set by one test out of the next one."""
    correlation_id_var.set("")


@pytest.fixture
def api_settings() -> ApiSettings:
    return ApiSettings(
        base_url="https://api.macrotracker.test",
        timeout=5.0,
        refresh_timeout=2.0,
        platform="test",
        locale="de",
    )


@pytest.fixture
def settings(api_settings: ApiSettings) -> Settings:
    return Settings(api=api_settings)


@pytest.fixture
def token() -> Token:
    return Token(access_token="access-1", refresh_token="refresh-1")


@pytest.fixture
def token_store() -> TokenStore:
    return TokenStore(MemoryBackend())
