"""Authentication configuration."""

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """
    Authentication tunables.

    Secrets are not here; they come from Vault (clients.vault_client).
    Durations use their natural units.
    """

    # Tokens
    access_token_expiry_minutes: int = Field(
        default=1440,  # 24 hours
        description="Access token lifetime",
        ge=5,
        le=10080,
    )
    refresh_token_expiry_days: int = Field(
        default=7,
        description="Refresh token lifetime",
        ge=1,
        le=90,
    )
    jwt_algorithm: str = Field(
        default="HS256",
        description="Signing algorithm for both token kinds",
    )

    # Rate limiting
    rate_limit_attempts: int = Field(
        default=5,
        description="Max login attempts per identifier per window",
        ge=1,
        le=20,
    )
    rate_limit_window_minutes: int = Field(
        default=15,
        description="Rate limit window duration",
        ge=5,
        le=60,
    )
