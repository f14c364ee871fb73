"""Pydantic models for auth domain."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class UserRole(str, Enum):
    """What a user may do. Finance actions need ADMIN or MANAGER."""

    ADMIN = "admin"
    MANAGER = "manager"
    STAFF = "staff"


class UserStatus(str, Enum):
    """Only ACTIVE users can log in or refresh tokens."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class User(BaseModel):
    """A registered user of the system. Never carries the password hash."""

    id: UUID
    username: str
    email: EmailStr
    role: UserRole
    status: UserStatus
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    """Data required to create a user."""

    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=1024)
    role: UserRole = UserRole.STAFF


class UserUpdate(BaseModel):
    """Fields that can be changed on a user. A new password is re-hashed."""

    username: str | None = Field(None, min_length=3, max_length=50)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=8, max_length=1024)
    role: UserRole | None = None
    status: UserStatus | None = None


class LoginRequest(BaseModel):
    """Request payload for login. Identifier is a username or an email."""

    username_or_email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=1024)


class RefreshRequest(BaseModel):
    """Request payload for token refresh."""

    refresh_token: str


class TokenPair(BaseModel):
    """Access and refresh tokens issued together."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class TokenClaims(BaseModel):
    """Identity carried by a validated access token."""

    user_id: UUID
    role: UserRole


class AuthenticatedUser(BaseModel):
    """User info returned after successful authentication."""

    user: User
    tokens: TokenPair


class UserActivity(BaseModel):
    """One entry of a user's activity log."""

    id: UUID
    user_id: UUID | None
    action: str
    ip_address: str | None
    details: dict[str, Any] | None
    created_at: datetime

    model_config = {"from_attributes": True}
