"""Global exception handlers for FastAPI."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from auth.exceptions import (
    AuthError,
    InvalidCredentialsError,
    PermissionDeniedError,
    RateLimitedError,
    TokenExpiredError,
    UserInactiveError,
)
from core.exceptions import (
    BusinessRuleError,
    ConflictError,
    DatabaseError,
    ERPError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def _json_error(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    headers: dict | None = None,
    details: dict | None = None,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        headers=headers,
        content=error_response(code, message, request_id, details).model_dump(mode="json"),
    )


def _status_for(exc: ERPError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, BusinessRuleError):
        return 400
    return 500


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(ERPError)
    async def domain_error_handler(request: Request, exc: ERPError):
        if isinstance(exc, DatabaseError):
            logger.error("Database error: %s", exc.context())
            return _json_error(request, 500, exc.code, "A database error occurred")
        logger.info("Domain error: %s %s", exc.context(), exc.message)
        return _json_error(
            request, _status_for(exc), exc.code, exc.message,
            details={"operation": exc.operation, "entity_id": exc.context()["entity_id"]},
        )

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        if isinstance(exc, RateLimitedError):
            return _json_error(
                request,
                429,
                ErrorCodes.RATE_LIMITED,
                f"Too many requests. Please wait {exc.retry_after_seconds} seconds.",
                headers={"Retry-After": str(exc.retry_after_seconds)},
            )
        if isinstance(exc, PermissionDeniedError):
            return _json_error(request, 403, ErrorCodes.FORBIDDEN, str(exc))
        if isinstance(exc, UserInactiveError):
            return _json_error(request, 403, ErrorCodes.ACCOUNT_INACTIVE, str(exc))
        if isinstance(exc, InvalidCredentialsError):
            return _json_error(request, 401, ErrorCodes.INVALID_CREDENTIALS, "Invalid username or password")
        if isinstance(exc, TokenExpiredError):
            return _json_error(request, 401, ErrorCodes.TOKEN_EXPIRED, "Token has expired")
        return _json_error(request, 401, ErrorCodes.INVALID_TOKEN, "Invalid or expired token")

    @app.exception_handler(ValidationError)
    async def model_validation_error_handler(request: Request, exc: ValidationError):
        return _json_error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors(include_url=False)))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _json_error(request, 400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _json_error(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json_error(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
