"""Application layer: session management and request orchestration."""
