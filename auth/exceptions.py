"""Typed exceptions for auth failures."""


class AuthError(Exception):
    """Base class for authentication errors."""


class InvalidCredentialsError(AuthError):
    """Backend rejected the login or registration. Message is the backend's reason."""


class MissingTokenError(AuthError):
    """Login succeeded but the backend returned no access token."""
