"""Authentication service - password login, token refresh and user management."""

import logging
from uuid import UUID

from auth.activity_logger import ActivityAction, ActivityLogger
from auth.database import AuthDatabase
from auth.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    RateLimitedError,
    UserInactiveError,
)
from auth.passwords import hash_password, verify_password
from auth.rate_limiter import RateLimiter
from auth.tokens import TokenManager
from auth.types import (
    AuthenticatedUser,
    TokenClaims,
    TokenPair,
    User,
    UserActivity,
    UserCreate,
    UserStatus,
    UserUpdate,
)
from core.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class AuthService:
    """Orchestrates authentication and user administration.

    Handles:
    - Login (rate limited per identifier)
    - Token refresh
    - User CRUD with password hashing
    - Activity history
    """

    def __init__(
        self,
        auth_db: AuthDatabase,
        tokens: TokenManager,
        rate_limiter: RateLimiter,
        activity_logger: ActivityLogger,
    ):
        self._auth_db = auth_db
        self._tokens = tokens
        self._rate_limiter = rate_limiter
        self._activity = activity_logger

    def authenticate(
        self,
        username_or_email: str,
        password: str,
        ip_address: str | None = None,
    ) -> AuthenticatedUser:
        """Verify credentials and issue a token pair.

        Flow:
        1. Count the attempt against the identifier's rate limit
        2. Look up user and verify password
        3. Check user is active
        4. Update last login, reset rate limit, issue tokens

        Raises:
            RateLimitedError: If too many attempts for this identifier.
            InvalidCredentialsError: If user unknown or password wrong.
            UserInactiveError: If the account is inactive or suspended.
        """
        identifier = username_or_email.strip()

        try:
            self._rate_limiter.check_rate_limit(identifier)
        except RateLimitedError:
            self._activity.log(
                ActivityAction.RATE_LIMITED,
                ip_address=ip_address,
                details={"identifier": identifier},
            )
            raise

        credentials = self._auth_db.get_credentials(identifier)
        if credentials is None:
            self._activity.log(
                ActivityAction.LOGIN_FAILED,
                ip_address=ip_address,
                details={"identifier": identifier, "reason": "user_not_found"},
            )
            raise InvalidCredentialsError("Invalid username or password")

        user, password_hash = credentials

        if not verify_password(password, password_hash):
            self._activity.log(
                ActivityAction.LOGIN_FAILED,
                user_id=user.id,
                ip_address=ip_address,
                details={"reason": "wrong_password"},
            )
            raise InvalidCredentialsError("Invalid username or password")

        if user.status != UserStatus.ACTIVE:
            self._activity.log(
                ActivityAction.LOGIN_FAILED,
                user_id=user.id,
                ip_address=ip_address,
                details={"reason": f"user_{user.status.value}"},
            )
            raise UserInactiveError(f"User account is {user.status.value}")

        self._auth_db.update_last_login(user.id)
        self._rate_limiter.reset_rate_limit(identifier)
        tokens = self._tokens.issue_pair(user)

        self._activity.log(ActivityAction.LOGIN_SUCCEEDED, user_id=user.id, ip_address=ip_address)
        logger.info("User %s logged in", user.username)

        # Re-read for the updated last_login_at
        user = self._auth_db.get_user_by_id(user.id) or user
        return AuthenticatedUser(user=user, tokens=tokens)

    def refresh(self, refresh_token: str, ip_address: str | None = None) -> TokenPair:
        """Exchange a valid refresh token for a new pair.

        Raises:
            InvalidTokenError: If token invalid or expired, or the user is gone or inactive.
        """
        user_id = self._tokens.decode_refresh(refresh_token)

        user = self._auth_db.get_user_by_id(user_id)
        if user is None or user.status != UserStatus.ACTIVE:
            raise InvalidTokenError("Invalid refresh token")

        tokens = self._tokens.issue_pair(user)
        self._activity.log(ActivityAction.TOKEN_REFRESHED, user_id=user.id, ip_address=ip_address)
        return tokens

    def validate_access_token(self, token: str) -> TokenClaims:
        """Validate access token.

        Raises:
            TokenExpiredError: If expired.
            InvalidTokenError: If otherwise invalid.
        """
        return self._tokens.decode_access(token)

    def create_user(self, data: UserCreate, actor_id: UUID | None = None) -> User:
        """Create a user with a hashed password.

        Raises:
            ConflictError: If username or email is taken.
        """
        user = self._auth_db.create_user(
            username=data.username,
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role.value,
        )
        self._activity.log(
            ActivityAction.USER_CREATED,
            user_id=user.id,
            details={"by": str(actor_id) if actor_id else None, "role": user.role.value},
        )
        return user

    def get_user(self, user_id: UUID) -> User:
        """Raises NotFoundError if no such user."""
        user = self._auth_db.get_user_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", operation="get_user", entity_id=user_id)
        return user

    def list_users(self, limit: int = 50, offset: int = 0) -> tuple[list[User], int]:
        return self._auth_db.list_users(limit, offset)

    def update_user(self, user_id: UUID, data: UserUpdate, actor_id: UUID | None = None) -> User:
        """Update user fields; a new password is hashed before storage.

        Raises:
            NotFoundError: If no such user.
            ConflictError: If the new username or email is taken.
        """
        updates = data.model_dump(mode="json", exclude_none=True)
        password = updates.pop("password", None)
        if password is not None:
            updates["password_hash"] = hash_password(password)

        user = self._auth_db.update_user(user_id, updates)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", operation="update_user", entity_id=user_id)

        self._activity.log(
            ActivityAction.USER_UPDATED,
            user_id=user_id,
            details={
                "by": str(actor_id) if actor_id else None,
                "fields": sorted("password" if f == "password_hash" else f for f in updates),
            },
        )
        return user

    def delete_user(self, user_id: UUID, actor_id: UUID | None = None) -> None:
        """Raises NotFoundError if no such user."""
        if not self._auth_db.delete_user(user_id):
            raise NotFoundError(f"User {user_id} not found", operation="delete_user", entity_id=user_id)

        self._activity.log(
            ActivityAction.USER_DELETED,
            details={"user_id": str(user_id), "by": str(actor_id) if actor_id else None},
        )
        logger.info("Deleted user %s", user_id)

    def list_activities(self, user_id: UUID, limit: int = 10, offset: int = 0) -> list[UserActivity]:
        """A user's activity history, newest first."""
        return self._activity.list_for_user(user_id, limit, offset)
