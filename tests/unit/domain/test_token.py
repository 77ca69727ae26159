"""Tests for the Token value object."""

import dataclasses

import pytest

from macrotrack.domain.value_objects import Token


class TestTokenFromResponse:
    """Test building tokens from auth endpoint payloads."""

    def test_full_payload(self):
        """Test that every field of the payload is taken over."""
        token = Token.from_response(
            {"access_token": "a", "refresh_token": "r", "token_type": "Bearer"}
        )
        assert token == Token(access_token="a", refresh_token="r", token_type="Bearer")

    def test_refresh_token_is_optional(self):
        """Test that a payload without refresh_token still yields a token."""
        token = Token.from_response({"access_token": "a"})
        assert token.refresh_token is None
        assert token.token_type == "bearer"

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            "access_token",
            [],
            {},
            {"access_token": ""},
            {"access_token": 42},
            {"access_token": "a", "refresh_token": 7},
        ],
    )
    def test_invalid_payload_raises_value_error(self, payload):
        """Test that malformed payloads are rejected."""
        with pytest.raises(ValueError):
            Token.from_response(payload)


class TestTokenSerialization:
    """Test storage serialization."""

    def test_json_round_trip(self):
        """Test that a stored token reads back equal."""
        token = Token(access_token="a", refresh_token="r")
        assert Token.from_json(token.to_json()) == token

    def test_corrupted_json_raises_value_error(self):
        """Test that broken JSON surfaces as ValueError."""
        with pytest.raises(ValueError):
            Token.from_json("{invalid-json")


class TestTokenBehavior:
    """Test token helpers."""

    def test_authorization_header(self):
        """Test the bearer header value."""
        assert Token(access_token="abc").authorization_header == "Bearer abc"

    def test_repr_hides_credentials(self):
        """Test that repr never contains the full secrets."""
        token = Token(access_token="supersecretaccess", refresh_token="supersecretrefresh")
        text = repr(token)
        assert "supersecretaccess" not in text
        assert "supersecretrefresh" not in text

    def test_token_is_immutable(self):
        """Test that a token cannot be patched in place."""
        token = Token(access_token="a")
        with pytest.raises(dataclasses.FrozenInstanceError):
            token.access_token = "b"  # type: ignore[misc]
