"""MacroTrack - resilient authenticated client for the MacroTracker backend API."""

from macrotrack.client import MacroTrackClient

__version__ = "0.1.0"

__all__ = ["MacroTrackClient", "__version__"]
