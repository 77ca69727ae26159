"""Tests for the error taxonomy."""

from macrotrack.domain.exceptions import (
    ApiError,
    AuthenticationFailedError,
    BackendError,
    DomainException,
    NetworkError,
    PermissionDeniedError,
    RateLimitedError,
    SessionExpiredError,
    ValidationError,
)


class TestTaxonomy:
    """Test the exception hierarchy callers branch on."""

    def test_session_expired_is_authentication_failure(self):
        """Test that catching AuthenticationFailedError also covers expired sessions."""
        error = SessionExpiredError()
        assert isinstance(error, AuthenticationFailedError)
        assert isinstance(error, BackendError)
        assert isinstance(error, ApiError)
        assert isinstance(error, DomainException)

    def test_network_error_is_not_backend_error(self):
        """Test that transport failures are distinguishable from server answers."""
        error = NetworkError()
        assert isinstance(error, ApiError)
        assert not isinstance(error, BackendError)
        assert error.status_code == 0


class TestMessages:
    """Test default and explicit messages."""

    def test_default_message_per_class(self):
        """Test that each class falls back to its own default message."""
        assert AuthenticationFailedError().message == AuthenticationFailedError.default_message
        assert SessionExpiredError().message == SessionExpiredError.default_message
        assert str(BackendError()) == BackendError.default_message

    def test_explicit_message_wins(self):
        """Test that a server-provided message is kept."""
        error = BackendError("Boom", status_code=500)
        assert error.message == "Boom"
        assert error.status_code == 500

    def test_network_timeout_message(self):
        """Test that timeouts get their own message."""
        error = NetworkError(is_timeout=True)
        assert error.is_timeout is True
        assert error.message == NetworkError.timeout_message

    def test_status_defaults(self):
        """Test that status-specific classes carry their status code."""
        assert AuthenticationFailedError().status_code == 401
        assert PermissionDeniedError().status_code == 403
        assert RateLimitedError().status_code == 429
        assert ValidationError().status_code == 422

    def test_repr_contains_status_and_message(self):
        """Test the debugging representation."""
        assert repr(BackendError("Boom", status_code=500)) == (
            "BackendError(status_code=500, message='Boom')"
        )


class TestPermissionDenied:
    """Test the unverified-email detection."""

    def test_not_activated_detail(self):
        """Test that 'not activated' marks the email as unverified."""
        error = PermissionDeniedError(detail="Account not activated")
        assert error.email_not_verified is True

    def test_not_verified_detail_case_insensitive(self):
        """Test that the check ignores case."""
        assert PermissionDeniedError(detail="Email NOT VERIFIED").email_not_verified is True

    def test_other_detail(self):
        """Test that other 403 reasons are not treated as unverified."""
        assert PermissionDeniedError(detail="Admins only").email_not_verified is False
        assert PermissionDeniedError().email_not_verified is False


class TestValidationError:
    """Test field-level error records."""

    def test_errors_are_copied(self):
        """Test that the errors list is kept as a copy."""
        records = [{"loc": ["body", "email"], "msg": "invalid", "type": "value_error"}]
        error = ValidationError(errors=records)
        assert error.errors == records
        assert error.errors is not records
        assert ValidationError().errors == []
