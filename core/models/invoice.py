"""Invoice domain models.

All amounts are Decimal. Item amounts are stored to the cent; invoice
subtotal and tax total are rounded to the cent once, over the exact sum of
the line values, so total == subtotal + tax_total holds exactly.
Tax rate is a fraction: 0.10 = 10%.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class InvoiceItemCreate(BaseModel):
    """One line on a new invoice."""

    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(..., gt=0, max_digits=12, decimal_places=3)
    unit_price: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    tax_rate: Decimal = Field(Decimal("0"), ge=0, le=1, max_digits=6, decimal_places=4)


class InvoiceCreate(BaseModel):
    """Data required to create an invoice. Totals are always computed, never supplied."""

    customer_id: UUID
    issue_date: date
    due_date: date
    items: list[InvoiceItemCreate] = Field(..., min_length=1)
    notes: str | None = Field(None, max_length=2000)
    terms: str | None = Field(None, max_length=2000)


class InvoiceStatusUpdate(BaseModel):
    """Status change requested by a collaborator (send, mark overdue, cancel)."""

    status: InvoiceStatus


class InvoiceItem(BaseModel):
    """Invoice line as stored. Owned by exactly one invoice."""

    id: UUID
    invoice_id: UUID
    position: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    amount: Decimal

    model_config = {"from_attributes": True}


class Invoice(BaseModel):
    """Full invoice entity as stored, with its items when loaded through the ledger."""

    id: UUID
    customer_id: UUID
    number: str
    issue_date: date
    due_date: date
    subtotal: Decimal
    tax_total: Decimal
    total: Decimal
    notes: str | None
    terms: str | None
    status: InvoiceStatus
    created_by: UUID
    created_at: datetime
    updated_at: datetime
    items: list[InvoiceItem] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @property
    def is_paid(self) -> bool:
        """Whether invoice is fully paid."""
        return self.status == InvoiceStatus.PAID
