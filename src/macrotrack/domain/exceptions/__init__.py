"""Domain exceptions.

Hey future me - this is THE error taxonomy of the client! Every failure that
leaves the request layer is one of these, so calling code can branch on the
exception TYPE instead of parsing messages:

    DomainException
      ConfigurationError
      ApiError
        NetworkError                 transport never completed (status 0)
        BackendError                 any non-2xx (catch-all)
          ValidationError            422 / list-valued "detail"
          AuthenticationFailedError  401, no credentials, wrong login
            SessionExpiredError      refresh rejected -> forced logout
          PaymentRequiredError       402
          PermissionDeniedError      403
          NotFoundError              404
          RateLimitedError           429

UI code: NetworkError -> offer "retry", BackendError -> "contact support",
AuthenticationFailedError (incl. SessionExpiredError) -> login prompt.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # We store message as an attribute so code can inspect it without parsing str(exception).
    # DON'T raise this directly - always use a specific subclass so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ConfigurationError(DomainException):
    """Application misconfiguration.

    Raised when required configuration is missing or invalid.

    Example:
        raise ConfigurationError("Secure token storage requires an encryption key")
    """

    pass


class ApiError(DomainException):
    """Base class for every failure of a backend API call.

    Attributes:
        status_code: HTTP status (0 when the transport never completed)
        detail: Raw "detail" field from the error body, if any
        correlation_id: Server correlation id from the response headers (logs only)
    """

    default_message = "Something went wrong. Please try again."

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 0,
        detail: Any = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(message or self.default_message)
        self.status_code = status_code
        self.detail = detail
        self.correlation_id = correlation_id
        # FastAPI-style field errors ride along on any status, not just 422.
        self.errors: list[Any] = list(detail) if isinstance(detail, list) else []

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(status_code={self.status_code}, "
            f"message={self.message!r})"
        )


class NetworkError(ApiError):
    """Transport failed: offline, DNS failure, connection reset, timeout.

    No status code exists for these - status_code is always 0. This layer
    never retries; retrying is the caller's decision.
    """

    default_message = "Could not connect to the server. Check your internet connection."
    timeout_message = "The server took too long to respond. Please try again."

    def __init__(self, message: str | None = None, is_timeout: bool = False) -> None:
        if message is None and is_timeout:
            message = self.timeout_message
        super().__init__(message, status_code=0)
        self.is_timeout = is_timeout


class BackendError(ApiError):
    """The server answered with a non-2xx status (catch-all)."""

    default_message = "The request failed. Please try again."


class ValidationError(BackendError):
    """Server rejected the request shape.

    errors holds the field-level records exactly as the server sent them
    (list of {"loc": [...], "msg": "...", "type": "..."} for FastAPI backends).
    """

    default_message = "Validation failed."

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 422,
        detail: Any = None,
        correlation_id: str | None = None,
        errors: list[Any] | None = None,
    ) -> None:
        super().__init__(message, status_code, detail, correlation_id)
        if errors is not None:
            self.errors = list(errors)


class AuthenticationFailedError(BackendError):
    """No usable credential exists, or the server rejected the credentials."""

    default_message = "Authentication with the server failed."

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 401,
        detail: Any = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code, detail, correlation_id)


class SessionExpiredError(AuthenticationFailedError):
    """The access token expired and could not be refreshed.

    Reached only through the refresh path - the session has been cleared and
    the logout signal has fired by the time a caller sees this.
    """

    default_message = "Your session has expired. Please log in again."


class PaymentRequiredError(BackendError):
    """HTTP 402 - the account lacks the coins/credits for this action."""

    default_message = "You don't have enough coins for this action."

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 402,
        detail: Any = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code, detail, correlation_id)


class PermissionDeniedError(BackendError):
    """HTTP 403 - authenticated but not allowed."""

    default_message = "You don't have permission to perform this action."
    unverified_message = "Please verify your email address to use this feature."

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 403,
        detail: Any = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code, detail, correlation_id)

    @property
    def email_not_verified(self) -> bool:
        """Check if the backend refused because the account is not activated yet."""
        if not isinstance(self.detail, str):
            return False
        lowered = self.detail.lower()
        return "not activated" in lowered or "not verified" in lowered


class NotFoundError(BackendError):
    """HTTP 404."""

    default_message = "The requested resource was not found."

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 404,
        detail: Any = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(message, status_code, detail, correlation_id)


class RateLimitedError(BackendError):
    """HTTP 429 - too many requests.

    retry_after is the Retry-After header in seconds (None if absent/unparseable).
    """

    default_message = "Too many requests. Please wait a moment and try again."

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 429,
        detail: Any = None,
        correlation_id: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status_code, detail, correlation_id)
        self.retry_after = retry_after


__all__ = [
    # Base
    "DomainException",
    "ConfigurationError",
    # API errors
    "ApiError",
    "NetworkError",
    "BackendError",
    "ValidationError",
    "AuthenticationFailedError",
    "SessionExpiredError",
    "PaymentRequiredError",
    "PermissionDeniedError",
    "NotFoundError",
    "RateLimitedError",
]
