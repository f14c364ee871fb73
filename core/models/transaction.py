"""Income/expense bookkeeping models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class TransactionType(str, Enum):
    """Direction of a cash movement."""

    INCOME = "income"
    EXPENSE = "expense"


class TransactionCreate(BaseModel):
    """Data required to record a transaction."""

    type: TransactionType
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    date: date
    reference_no: str | None = Field(None, max_length=100)
    attachment_url: str | None = Field(None, max_length=1000)


class TransactionFilter(BaseModel):
    """Optional filters for listing transactions."""

    type: TransactionType | None = None
    start_date: date | None = None
    end_date: date | None = None
    category: str | None = None

    @model_validator(mode="after")
    def check_date_range(self) -> "TransactionFilter":
        """Reject an inverted date range."""
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class Transaction(BaseModel):
    """Full transaction entity as stored."""

    id: UUID
    type: TransactionType
    amount: Decimal
    category: str
    description: str
    date: date
    reference_no: str | None
    attachment_url: str | None
    created_by: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
