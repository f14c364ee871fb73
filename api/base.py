"""
Response envelope shared by every endpoint.

Success and error bodies have the same shape: success flag, data or error,
and meta with a timestamp and the request id used in the server log.
"""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(None, description="Operation and entity the error refers to")


class APIMeta(BaseModel):
    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="X-Request-ID of the request, for log correlation")


class APIResponse(BaseModel):
    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta(request_id: str | None) -> APIMeta:
    return APIMeta(timestamp=now_utc(), request_id=request_id or str(uuid4()))


def success_response(data: Any, request_id: str | None = None) -> APIResponse:
    """Wrap data in a success envelope."""
    return APIResponse(success=True, data=data, meta=_meta(request_id))


def error_response(
    code: str,
    message: str,
    request_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> APIResponse:
    """Wrap an error in the envelope. request_id falls back to a fresh one."""
    return APIResponse(
        success=False,
        error=APIError(code=code, message=message, details=details),
        meta=_meta(request_id),
    )


class ErrorCodes:
    """
    Standard error codes for consistent error handling.

    Domain errors carry their own code (ERPError.code); these are the
    values clients can expect to see.
    """

    # Authentication & Authorization
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    # Resource Errors
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Ledger
    PAYMENT_EXCEEDS_TOTAL = "PAYMENT_EXCEEDS_TOTAL"

    # Infrastructure
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
