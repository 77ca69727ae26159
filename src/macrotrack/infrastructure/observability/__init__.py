"""Observability infrastructure for structured logging."""

from macrotrack.infrastructure.observability.logger_template import (
    log_operation,
    log_slow_operation,
)
from macrotrack.infrastructure.observability.logging import (
    CORRELATION_HEADER,
    configure_logging,
    get_correlation_id,
    set_correlation_id,
)

__all__ = [
    "CORRELATION_HEADER",
    "configure_logging",
    "get_correlation_id",
    "log_operation",
    "log_slow_operation",
    "set_correlation_id",
]
