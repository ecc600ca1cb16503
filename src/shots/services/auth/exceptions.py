"""Custom exceptions for authentication."""


class AuthenticationError(Exception):
    """Raised when the identity provider rejects or fails an auth call."""

    pass


class CredentialError(AuthenticationError):
    """Raised when provider credential artifacts are missing or malformed. Never retried."""

    pass
