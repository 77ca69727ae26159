"""Shared logger utilities.

USAGE:
    from macrotrack.infrastructure.observability.logger_template import (
        log_operation,
        log_slow_operation,
    )

    async with log_operation(logger, "token_refresh", endpoint="/users/status"):
        token = await session.refresh(refresh_token)

    log_slow_operation(logger, "api_request", duration_ms, threshold_ms=5000, endpoint=path)
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any


# Yo, this context manager logs start/end with automatic duration tracking. The **context args
# become extra fields in both logs. On exception it logs "<operation>.failed" WITHOUT the
# traceback at ERROR (the caller decides how loud a failure is) and re-raises. Keep context
# values free of credentials - tokens must never reach the logs!
@asynccontextmanager
async def log_operation(
    logger: logging.Logger,
    operation: str,
    **context: Any,
) -> AsyncIterator[None]:
    """Log operation start/end with automatic timing.

    Logs:
    - {operation}.started with context fields
    - {operation}.completed with context + duration_ms
    - {operation}.failed with context + duration_ms + error type (then re-raises)
    """
    start = time.monotonic()
    logger.info(f"{operation}.started", extra=context)

    try:
        yield
    except Exception as e:
        duration_ms = int((time.monotonic() - start) * 1000)
        logger.warning(
            f"{operation}.failed",
            extra={
                **context,
                "duration_ms": duration_ms,
                "error": str(e),
                "error_type": type(e).__name__,
            },
        )
        raise

    duration_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        f"{operation}.completed",
        extra={**context, "duration_ms": duration_ms},
    )


def log_slow_operation(
    logger: logging.Logger,
    operation: str,
    duration_ms: int,
    threshold_ms: int = 100,
    **context: Any,
) -> None:
    """Log warning if operation exceeded threshold.

    Args:
        logger: Logger instance
        operation: Operation name
        duration_ms: Actual operation duration
        threshold_ms: Threshold for "slow"
        **context: Additional fields (e.g., endpoint)
    """
    if duration_ms > threshold_ms:
        logger.warning(
            "operation.slow",
            extra={
                **context,
                "operation": operation,
                "duration_ms": duration_ms,
                "threshold_ms": threshold_ms,
            },
        )
