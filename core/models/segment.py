"""Customer segment models."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class SegmentCreate(BaseModel):
    """Data required to create a segment."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=2000)
    criteria: dict[str, Any] | None = None


class Segment(BaseModel):
    """Full segment entity as stored."""

    id: UUID
    name: str
    description: str | None
    criteria: dict[str, Any] | None
    created_by: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
