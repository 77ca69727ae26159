"""Response classification for backend calls.

Hey future me - this is the ONE place that turns httpx responses/exceptions into our error
taxonomy. Both the request coordinator and the auth API client use it, so a 403 looks the
same whether it came from /auth/login or /users/status.

Rules:
- Transport failure -> NetworkError (is_timeout for timeouts). Status 0.
- 204 / empty 2xx body -> None.
- 2xx JSON content type -> parsed JSON. Broken JSON on a 2xx -> None + warning.
- 2xx anything else -> response.text.
- non-2xx -> BackendError subclass picked by status; message from "detail" if it's a
  string, "Validation failed." if it's a list (kept on .errors), status default otherwise.
  An unparseable error body NEVER raises a secondary parse error.
"""

import json
import logging
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

from macrotrack.domain.exceptions import (
    AuthenticationFailedError,
    BackendError,
    NetworkError,
    NotFoundError,
    PaymentRequiredError,
    PermissionDeniedError,
    RateLimitedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

CORRELATION_RESPONSE_HEADERS = ("X-Correlation-ID", "X-Request-ID")

SERVER_ERROR_MESSAGE = "The server encountered an error. Please try again later."

# Direct status -> exception mappings. Each class carries its own default message.
_STATUS_ERRORS: dict[int, type[BackendError]] = {
    401: AuthenticationFailedError,
    402: PaymentRequiredError,
    403: PermissionDeniedError,
    404: NotFoundError,
    422: ValidationError,
    429: RateLimitedError,
}


def correlation_id_from(response: httpx.Response) -> str | None:
    """Server correlation id, if the response carries one."""
    for header in CORRELATION_RESPONSE_HEADERS:
        value = response.headers.get(header)
        if value:
            return value
    return None


def is_json_response(response: httpx.Response) -> bool:
    """True for application/json and any +json media type."""
    content_type = response.headers.get("content-type", "")
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


def network_error_from(exc: httpx.RequestError) -> NetworkError:
    """Map an httpx transport exception to NetworkError."""
    return NetworkError(is_timeout=isinstance(exc, httpx.TimeoutException))


def parse_success_body(response: httpx.Response) -> Any:
    """Payload of a 2xx response (see module rules)."""
    if response.status_code == 204 or not response.content:
        return None
    if not is_json_response(response):
        return response.text
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning(
            "Response declared JSON but could not be parsed (status=%d, correlation_id=%s)",
            response.status_code,
            correlation_id_from(response),
        )
        return None


def _error_body(response: httpx.Response) -> Any:
    if not response.content or not is_json_response(response):
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def parse_retry_after(value: str | None) -> float | None:
    """Retry-After as seconds; accepts delta-seconds or an HTTP date."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        # float() happily parses "nan" and "inf" - neither is a usable delay.
        return max(seconds, 0.0) if math.isfinite(seconds) else None
    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max((retry_at - datetime.now(timezone.utc)).total_seconds(), 0.0)


def error_from_status(
    status_code: int,
    body: Any = None,
    correlation_id: str | None = None,
    retry_after: float | None = None,
) -> BackendError:
    """Build the taxonomy error for a non-2xx status and (already parsed) body."""
    detail = body.get("detail") if isinstance(body, dict) else None
    error_cls = _STATUS_ERRORS.get(status_code)

    # A list detail is field-level output. It only decides the class where the status itself
    # says nothing more specific; a 403/429/5xx keeps its own class and carries the list.
    if isinstance(detail, list):
        if error_cls is ValidationError or (error_cls is None and 400 <= status_code < 500):
            return ValidationError(
                status_code=status_code,
                detail=detail,
                correlation_id=correlation_id,
                errors=detail,
            )
        message: str | None = ValidationError.default_message
    else:
        message = detail.strip() if isinstance(detail, str) and detail.strip() else None

    if error_cls is RateLimitedError:
        return RateLimitedError(
            message,
            detail=detail,
            correlation_id=correlation_id,
            retry_after=retry_after,
        )
    if error_cls is PermissionDeniedError:
        error = PermissionDeniedError(message, detail=detail, correlation_id=correlation_id)
        if error.email_not_verified:
            error.message = PermissionDeniedError.unverified_message
            error.args = (error.message,)
        return error
    if error_cls is not None:
        return error_cls(message, status_code=status_code, detail=detail, correlation_id=correlation_id)

    if message is None:
        if status_code >= 500:
            message = SERVER_ERROR_MESSAGE
        else:
            message = f"Request failed with status {status_code}."
    return BackendError(message, status_code=status_code, detail=detail, correlation_id=correlation_id)


def error_from_response(response: httpx.Response) -> BackendError:
    """Build the taxonomy error for a non-2xx response."""
    return error_from_status(
        response.status_code,
        _error_body(response),
        correlation_id=correlation_id_from(response),
        retry_after=parse_retry_after(response.headers.get("Retry-After")),
    )


def handle_response(response: httpx.Response) -> Any:
    """Return the payload of a 2xx response or raise the matching BackendError."""
    if response.is_success:
        return parse_success_body(response)
    raise error_from_response(response)
