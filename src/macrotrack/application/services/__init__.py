"""Application services."""

from macrotrack.application.services.auth_session_manager import AuthSessionManager
from macrotrack.application.services.backend_service import BackendService
from macrotrack.application.services.logout_signal import LogoutListener, LogoutSignal
from macrotrack.application.services.request_coordinator import (
    PendingRequest,
    RefreshState,
    ReplayPlan,
    RequestCoordinator,
    RequestOptions,
)

__all__ = [
    "AuthSessionManager",
    "BackendService",
    "LogoutListener",
    "LogoutSignal",
    "PendingRequest",
    "RefreshState",
    "ReplayPlan",
    "RequestCoordinator",
    "RequestOptions",
]
