"""Typed exceptions for auth failures."""


class AuthError(Exception):
    """Base class for authentication errors."""


class InvalidCredentialError(AuthError):
    """
    Submitted code is wrong, expired, already consumed, or unknown.

    The message never says which, so callers cannot probe for live codes.
    """


class UnauthenticatedError(AuthError):
    """No valid session accompanies the request."""


class SessionExpiredError(UnauthenticatedError):
    """Session token is unknown, revoked, or past its 24h lifetime."""


class RateLimitedError(AuthError):
    """Too many attempts. Client should wait before retrying."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limited. Retry after {retry_after_seconds} seconds.")
