"""Token value object - the credential pair of the current session.

Hey future me - Token is IMMUTABLE (frozen dataclass)! A refresh never patches
the old pair, it produces a brand-new Token and the old one is simply dropped.
That's what lets the request coordinator hand the SAME refreshed token to every
replayed request without worrying that something mutates it underneath.
"""

import json
from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class Token:
    """Access/refresh credential pair as issued by the auth endpoints.

    Attributes:
        access_token: Short-lived bearer credential attached to requests
        refresh_token: Longer-lived credential exchanged for a new pair (may be None)
        token_type: Token type reported by the server (usually "bearer")
    """

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"

    # Never let credentials leak into logs via repr()/f-strings.
    def __repr__(self) -> str:
        return (
            f"Token(access_token='{self.access_token[:4]}…', "
            f"refresh_token={'set' if self.refresh_token else None}, "
            f"token_type={self.token_type!r})"
        )

    @property
    def authorization_header(self) -> str:
        """Value for the Authorization header."""
        return f"Bearer {self.access_token}"

    @classmethod
    def from_response(cls, payload: Any) -> "Token":
        """Build a Token from an auth endpoint payload.

        Raises:
            ValueError: If payload is not an object or has no access_token
        """
        if not isinstance(payload, dict):
            raise ValueError("Token payload must be a JSON object")
        access_token = payload.get("access_token")
        if not isinstance(access_token, str) or not access_token:
            raise ValueError("Token payload is missing access_token")
        refresh_token = payload.get("refresh_token")
        if refresh_token is not None and not isinstance(refresh_token, str):
            raise ValueError("refresh_token must be a string")
        token_type = payload.get("token_type") or "bearer"
        return cls(
            access_token=access_token,
            refresh_token=refresh_token or None,
            token_type=str(token_type),
        )

    def to_json(self) -> str:
        """Serialize for storage."""
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "Token":
        """Deserialize a stored token.

        Raises:
            ValueError: If raw is not valid JSON or not a token object
                (json.JSONDecodeError is a ValueError subclass)
        """
        return cls.from_response(json.loads(raw))
