"""JWT access and refresh tokens (PyJWT, HS256).

Access tokens carry the user id and role and are signed with the access
secret. Refresh tokens carry only the user id and are signed with a separate
secret, so one can never be presented as the other.
"""

import logging
from datetime import timedelta
from uuid import UUID

import jwt

from auth.config import AuthConfig
from auth.exceptions import InvalidTokenError, TokenExpiredError
from auth.types import TokenClaims, TokenPair, User, UserRole
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


class TokenManager:
    """Issues and validates token pairs."""

    def __init__(self, secret: str, refresh_secret: str, config: AuthConfig):
        if not secret or not refresh_secret:
            raise ValueError("JWT secrets must be configured")
        self._secret = secret
        self._refresh_secret = refresh_secret
        self._config = config

    def issue_pair(self, user: User) -> TokenPair:
        """Sign a fresh access token and refresh token for user."""
        now = now_utc()
        access_ttl = timedelta(minutes=self._config.access_token_expiry_minutes)
        refresh_ttl = timedelta(days=self._config.refresh_token_expiry_days)

        access_token = jwt.encode(
            {
                "sub": str(user.id),
                "role": user.role.value,
                "type": ACCESS,
                "iat": now,
                "exp": now + access_ttl,
            },
            self._secret,
            algorithm=self._config.jwt_algorithm,
        )
        refresh_token = jwt.encode(
            {
                "sub": str(user.id),
                "type": REFRESH,
                "iat": now,
                "exp": now + refresh_ttl,
            },
            self._refresh_secret,
            algorithm=self._config.jwt_algorithm,
        )

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int(access_ttl.total_seconds()),
        )

    def _decode(self, token: str, secret: str, expected_type: str) -> dict:
        try:
            payload = jwt.decode(token, secret, algorithms=[self._config.jwt_algorithm])
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected %s token: %s", expected_type, e)
            raise InvalidTokenError("Invalid token") from e

        if payload.get("type") != expected_type:
            raise InvalidTokenError(f"Expected {expected_type} token")

        try:
            UUID(payload["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError("Token subject is not a user id") from e
        return payload

    def decode_access(self, token: str) -> TokenClaims:
        """
        Validate an access token.

        Raises:
            TokenExpiredError: If expired
            InvalidTokenError: If malformed, badly signed or not an access token
        """
        payload = self._decode(token, self._secret, ACCESS)
        try:
            role = UserRole(payload.get("role"))
        except ValueError as e:
            raise InvalidTokenError("Token carries an unknown role") from e
        return TokenClaims(user_id=UUID(payload["sub"]), role=role)

    def decode_refresh(self, token: str) -> UUID:
        """Validate a refresh token and return its user id."""
        payload = self._decode(token, self._refresh_secret, REFRESH)
        return UUID(payload["sub"])
