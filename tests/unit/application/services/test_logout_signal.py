"""Tests for the forced-logout signal."""

from unittest.mock import AsyncMock, MagicMock

from macrotrack.application.services.logout_signal import LogoutSignal


class TestLogoutSignal:
    """Test subscribe/emit/unsubscribe."""

    async def test_sync_and_async_listeners_are_called(self):
        """Test that both kinds of listeners get the reason."""
        signal = LogoutSignal()
        sync_listener = MagicMock(return_value=None)
        async_listener = AsyncMock()
        signal.subscribe(sync_listener)
        signal.subscribe(async_listener)

        await signal.emit("refresh_failed")

        sync_listener.assert_called_once_with("refresh_failed")
        async_listener.assert_awaited_once_with("refresh_failed")

    async def test_unsubscribe_is_idempotent(self):
        """Test that calling the disposer twice is harmless."""
        signal = LogoutSignal()
        listener = MagicMock(return_value=None)
        unsubscribe = signal.subscribe(listener)

        unsubscribe()
        unsubscribe()
        await signal.emit("session_expired")

        listener.assert_not_called()
        assert signal.listener_count == 0

    async def test_failing_listener_does_not_stop_others(self):
        """Test that one broken listener is logged and skipped."""
        signal = LogoutSignal()
        broken = MagicMock(side_effect=RuntimeError("ui gone"))
        healthy = MagicMock(return_value=None)
        signal.subscribe(broken)
        signal.subscribe(healthy)

        await signal.emit("session_expired")

        healthy.assert_called_once_with("session_expired")

    async def test_listener_may_unsubscribe_itself(self):
        """Test that unsubscribing during emit does not skip the next listener."""
        signal = LogoutSignal()
        calls: list[str] = []
        unsubscribe_first = None

        def first(reason: str) -> None:
            calls.append("first")
            unsubscribe_first()

        def second(reason: str) -> None:
            calls.append("second")

        unsubscribe_first = signal.subscribe(first)
        signal.subscribe(second)

        await signal.emit("session_expired")

        assert calls == ["first", "second"]
        assert signal.listener_count == 1
