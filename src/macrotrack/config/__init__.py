"""Configuration module for MacroTrack."""

from .settings import (
    ApiSettings,
    ObservabilitySettings,
    Settings,
    TokenStorageMode,
    TokenStorageSettings,
    get_settings,
)

__all__ = [
    "ApiSettings",
    "ObservabilitySettings",
    "Settings",
    "TokenStorageMode",
    "TokenStorageSettings",
    "get_settings",
]
