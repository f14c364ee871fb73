"""Customer interaction (contact history) models."""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class InteractionType(str, Enum):
    """Channel of a customer interaction."""

    EMAIL = "email"
    PHONE = "phone"
    MEETING = "meeting"
    NOTE = "note"
    OTHER = "other"


class InteractionCreate(BaseModel):
    """Data required to log an interaction."""

    customer_id: UUID
    type: InteractionType
    summary: str = Field(..., min_length=1, max_length=500)
    details: str | None = Field(None, max_length=10000)
    interaction_date: datetime | None = None  # Defaults to now
    next_follow_up_date: datetime | None = None


class Interaction(BaseModel):
    """Full interaction entity as stored."""

    id: UUID
    customer_id: UUID
    type: InteractionType
    summary: str
    details: str | None
    interaction_date: datetime
    next_follow_up_date: datetime | None
    created_by: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
