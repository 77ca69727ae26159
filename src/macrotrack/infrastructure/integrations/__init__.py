"""External integration client implementations."""

from macrotrack.infrastructure.integrations.auth_api_client import AuthApiClient
from macrotrack.infrastructure.integrations.client_id import ClientIdProvider
from macrotrack.infrastructure.integrations.http_pool import HttpClientPool

__all__ = [
    "AuthApiClient",
    "ClientIdProvider",
    "HttpClientPool",
]
