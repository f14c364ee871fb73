"""Core domain models."""

from core.models.customer import (
    Customer, CustomerCreate, CustomerUpdate, CustomerAddress, CustomerType, CustomerStatus,
)
from core.models.interaction import Interaction, InteractionCreate, InteractionType
from core.models.segment import Segment, SegmentCreate
from core.models.transaction import Transaction, TransactionCreate, TransactionFilter, TransactionType
from core.models.invoice import (
    Invoice, InvoiceCreate, InvoiceItem, InvoiceItemCreate, InvoiceStatus, InvoiceStatusUpdate,
)
from core.models.payment import Payment, PaymentCreate, PaymentMethod, PaymentStatus

__all__ = [
    # Customer
    "Customer", "CustomerCreate", "CustomerUpdate", "CustomerAddress", "CustomerType", "CustomerStatus",
    # Interaction
    "Interaction", "InteractionCreate", "InteractionType",
    # Segment
    "Segment", "SegmentCreate",
    # Transaction
    "Transaction", "TransactionCreate", "TransactionFilter", "TransactionType",
    # Invoice
    "Invoice", "InvoiceCreate", "InvoiceItem", "InvoiceItemCreate", "InvoiceStatus", "InvoiceStatusUpdate",
    # Payment
    "Payment", "PaymentCreate", "PaymentMethod", "PaymentStatus",
]
