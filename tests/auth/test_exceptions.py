"""Tests for auth/exceptions.py - Typed exceptions for auth failures."""

from auth.exceptions import AuthError, InvalidCredentialsError, MissingTokenError


class TestExceptionInheritance:
    """All auth exceptions should inherit from AuthError."""

    def test_invalid_credentials_inherits(self):
        assert issubclass(InvalidCredentialsError, AuthError)

    def test_missing_token_inherits(self):
        assert issubclass(MissingTokenError, AuthError)

    def test_message_preserved(self):
        assert str(InvalidCredentialsError("Invalid email or password")) == "Invalid email or password"
