"""Typed exceptions for auth failures."""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""


class InvalidCredentialsError(AuthError):
    """
    Unknown user or wrong password.

    The two cases are deliberately indistinguishable to the caller.
    """


class InvalidTokenError(AuthError):
    """Token is malformed, has a bad signature or is of the wrong type."""


class TokenExpiredError(InvalidTokenError):
    """Token signature is valid but it has expired."""


class RateLimitedError(AuthError):
    """Too many attempts. Client should wait before retrying."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limited. Retry after {retry_after_seconds} seconds.")


class UserInactiveError(AuthError):
    """User account is inactive or suspended. Login not permitted."""


class PermissionDeniedError(AuthError):
    """Authenticated user's role does not allow this operation."""
