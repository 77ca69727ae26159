"""Logout signal - observer for forced logout.

Hey future me - UI code subscribes here to bounce the user to the login screen when the
session dies under them (refresh rejected, no credentials). It's an INSTANCE owned by the
session manager, not a module global, so two clients in one test never see each other's
listeners.

    unsubscribe = session.register_logout_listener(show_login_screen)
    ...
    unsubscribe()  # on teardown; calling it twice is fine
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

LogoutListener = Callable[[str], Awaitable[Any] | Any]


class LogoutSignal:
    """Multi-slot observer; listeners get the logout reason string."""

    def __init__(self) -> None:
        self._listeners: list[LogoutListener] = []

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: LogoutListener) -> Callable[[], None]:
        """Register listener; returns an idempotent disposer."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Listeners run in subscription order over a snapshot (a listener may unsubscribe itself).
    # A broken listener is logged and skipped - one bad UI hook must not stop the others.
    async def emit(self, reason: str) -> None:
        """Notify every listener. Async listeners are awaited."""
        for listener in list(self._listeners):
            try:
                result = listener(reason)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Logout listener %r failed", listener)
