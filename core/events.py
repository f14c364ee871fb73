"""
Domain events.

Immutable records of something that already happened and committed. A
service publishes, handlers react, and the publisher never knows who is
listening. Events carry the full domain objects so handlers do not re-read.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

from utils.timezone import now_utc


@dataclass(frozen=True, kw_only=True)
class ERPEvent:
    """Base class for all domain events."""
    event_id: str = field(default_factory=lambda: str(uuid4()))
    occurred_at: datetime = field(default_factory=now_utc)


# =============================================================================
# LEDGER EVENTS
# =============================================================================


@dataclass(frozen=True)
class InvoiceCreated(ERPEvent):
    """A new invoice was created in DRAFT status."""
    invoice: Any = None  # Invoice; Any avoids a models import cycle

    @classmethod
    def create(cls, invoice: Any) -> "InvoiceCreated":
        return cls(invoice=invoice)


@dataclass(frozen=True)
class PaymentRecorded(ERPEvent):
    """A payment was stored against an invoice."""
    payment: Any = None

    @classmethod
    def create(cls, payment: Any) -> "PaymentRecorded":
        return cls(payment=payment)


@dataclass(frozen=True)
class InvoicePaid(ERPEvent):
    """Completed payments reached the invoice total and status moved to PAID."""
    invoice: Any = None
    payment: Any = None

    @classmethod
    def create(cls, invoice: Any, payment: Any) -> "InvoicePaid":
        return cls(invoice=invoice, payment=payment)


# =============================================================================
# CUSTOMER EVENTS
# =============================================================================


@dataclass(frozen=True)
class CustomerCreated(ERPEvent):
    """A new customer was created."""
    customer: Any = None

    @classmethod
    def create(cls, customer: Any) -> "CustomerCreated":
        return cls(customer=customer)
