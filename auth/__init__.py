"""Authentication and authorization modules."""

from auth.exceptions import (
    AuthError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    RateLimitedError,
    UserInactiveError,
    PermissionDeniedError,
)
from auth.types import (
    User,
    UserRole,
    UserStatus,
    UserCreate,
    UserUpdate,
    LoginRequest,
    RefreshRequest,
    TokenPair,
    TokenClaims,
    AuthenticatedUser,
    UserActivity,
)
from auth.config import AuthConfig
from auth.passwords import hash_password, verify_password
from auth.tokens import TokenManager
from auth.database import AuthDatabase
from auth.rate_limiter import RateLimiter
from auth.activity_logger import ActivityLogger, ActivityAction
from auth.service import AuthService
from auth.permissions import check_role, require_current_role, require_roles
from auth.security_middleware import AuthMiddleware
from auth.api import create_auth_router
