"""Security middleware for FastAPI - bearer token validation and user context."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from auth.exceptions import InvalidTokenError, TokenExpiredError
from auth.tokens import TokenManager
from api.base import error_response, ErrorCodes
from utils.user_context import set_current_user, clear_current_user

logger = logging.getLogger(__name__)


def _unauthorized(request: Request, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        headers={"WWW-Authenticate": "Bearer"},
        content=error_response(
            code, message, getattr(request.state, "request_id", None)
        ).model_dump(mode="json"),
    )


class AuthMiddleware(BaseHTTPMiddleware):
    """Middleware that validates the access token and sets user context.

    For protected routes:
    1. Extracts the token from 'Authorization: Bearer <token>'
    2. Validates it via TokenManager
    3. Sets user_id and role in request.state and the user context
    4. Clears context after request completes

    Public paths bypass authentication entirely.
    """

    PUBLIC_PATHS = [
        "/auth/login",
        "/auth/refresh",
        "/health",
        "/docs",
        "/openapi.json",
    ]

    def __init__(self, app, token_manager: TokenManager):
        super().__init__(app)
        self._token_manager = token_manager

    def _is_public_path(self, path: str) -> bool:
        """Check if path is in public paths list."""
        return any(path == p or path.startswith(p + "/") for p in self.PUBLIC_PATHS)

    async def dispatch(self, request: Request, call_next):
        """Process request through middleware."""
        if self._is_public_path(request.url.path):
            return await call_next(request)

        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return _unauthorized(request, ErrorCodes.NOT_AUTHENTICATED, "Authentication required")

        try:
            claims = self._token_manager.decode_access(token.strip())
        except TokenExpiredError:
            return _unauthorized(request, ErrorCodes.TOKEN_EXPIRED, "Access token has expired")
        except InvalidTokenError:
            logger.info("Rejected invalid access token for %s", request.url.path)
            return _unauthorized(request, ErrorCodes.INVALID_TOKEN, "Invalid access token")

        set_current_user(claims.user_id, claims.role.value)
        request.state.user_id = claims.user_id
        request.state.role = claims.role

        try:
            return await call_next(request)
        finally:
            clear_current_user()
