"""Payment domain models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from utils.timezone import today_utc


class PaymentMethod(str, Enum):
    """How the customer paid."""

    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CREDIT_CARD = "credit_card"
    WECHAT = "wechat"
    ALIPAY = "alipay"


class PaymentStatus(str, Enum):
    """Payment settlement status. Only COMPLETED counts towards reconciliation."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentCreate(BaseModel):
    """Data required to record a payment against an invoice."""

    invoice_id: UUID
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)
    payment_date: date = Field(default_factory=today_utc)
    payment_method: PaymentMethod
    reference_no: str | None = Field(None, max_length=100)
    status: PaymentStatus = PaymentStatus.COMPLETED
    notes: str | None = Field(None, max_length=2000)


class Payment(BaseModel):
    """Full payment entity as stored. Never mutated after creation."""

    id: UUID
    invoice_id: UUID
    amount: Decimal
    payment_date: date
    payment_method: PaymentMethod
    reference_no: str | None
    status: PaymentStatus
    notes: str | None
    created_by: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
