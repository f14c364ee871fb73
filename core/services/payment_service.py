"""
Payment recorder.

Recording a payment and reconciling the invoice happen in one transaction
that holds a row lock on the invoice:

1. lock and load the invoice (NotFoundError if absent)
2. reject amount > invoice.total before writing anything
3. insert the payment
4. sum completed payments; if the sum reaches the total, mark the invoice PAID

The ceiling is the invoice total, not the remaining balance, so several
payments may together exceed the total. Pending, failed and refunded
payments are stored but do not count towards the sum.
"""

import logging
from decimal import Decimal
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction
from core.event_bus import EventBus
from core.events import InvoicePaid, PaymentRecorded
from core.exceptions import BusinessRuleError, translate_db_errors
from core.models import InvoiceStatus, Payment, PaymentCreate, PaymentStatus
from core.services.ledger_queries import LedgerQueries
from utils.timezone import now_utc
from utils.user_context import resolve_actor

logger = logging.getLogger(__name__)


class PaymentService:
    """Service for recording payments against invoices."""

    def __init__(
        self,
        postgres: PostgresClient,
        audit: AuditLogger,
        event_bus: EventBus,
        queries: LedgerQueries | None = None,
    ):
        self.postgres = postgres
        self.audit = audit
        self.event_bus = event_bus
        self.queries = queries or LedgerQueries(postgres)

    def create_payment(self, data: PaymentCreate, actor_id: UUID | None = None) -> Payment:
        """
        Record a payment and reconcile the invoice's status.

        Args:
            data: Validated payment data
            actor_id: Acting user (defaults to current context)

        Returns:
            The stored payment

        Raises:
            NotFoundError: If the invoice does not exist
            BusinessRuleError: If amount exceeds the invoice total
                (code PAYMENT_EXCEEDS_TOTAL); nothing was written
            DatabaseError: Store failure; nothing was written
        """
        actor = resolve_actor(actor_id)
        payment_id = uuid4()
        became_paid = False

        with translate_db_errors("create_payment", data.invoice_id):
            with self.postgres.transaction() as tx:
                invoice = self.queries.get_invoice_by_id(data.invoice_id, tx=tx, for_update=True)

                if data.amount > invoice.total:
                    raise BusinessRuleError(
                        f"Payment amount {data.amount} exceeds invoice total {invoice.total}",
                        operation="create_payment",
                        entity_id=invoice.id,
                        code="PAYMENT_EXCEEDS_TOTAL",
                    )

                now = now_utc()
                row = tx.execute_returning(
                    """
                    INSERT INTO payments (
                        id, invoice_id, amount, payment_date, payment_method,
                        reference_no, status, notes, created_by, created_at, updated_at
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING *
                    """,
                    (
                        payment_id, invoice.id, data.amount, data.payment_date,
                        data.payment_method.value, data.reference_no, data.status.value,
                        data.notes, actor, now, now
                    )
                )[0]
                payment = Payment.model_validate(row)

                self.audit.log_change(
                    entity_type="payment",
                    entity_id=payment_id,
                    action=AuditAction.CREATE,
                    changes={"created": data.model_dump(mode="json", exclude_none=True)},
                    user_id=actor,
                    tx=tx,
                )

                paid_sum = Decimal(tx.execute_scalar(
                    """
                    SELECT COALESCE(SUM(amount), 0) FROM payments
                    WHERE invoice_id = %s AND status = %s
                    """,
                    (invoice.id, PaymentStatus.COMPLETED.value)
                ))

                if paid_sum >= invoice.total and invoice.status != InvoiceStatus.PAID:
                    tx.execute(
                        "UPDATE invoices SET status = %s, updated_at = %s WHERE id = %s",
                        (InvoiceStatus.PAID.value, now, invoice.id)
                    )
                    self.audit.log_change(
                        entity_type="invoice",
                        entity_id=invoice.id,
                        action=AuditAction.UPDATE,
                        changes={"status": {"old": invoice.status.value, "new": InvoiceStatus.PAID.value}},
                        user_id=actor,
                        tx=tx,
                    )
                    became_paid = True

        logger.info(
            "Recorded payment %s of %s on invoice %s (paid %s of %s)",
            payment_id, data.amount, invoice.number, paid_sum, invoice.total,
        )

        self.event_bus.publish(PaymentRecorded.create(payment=payment))
        if became_paid:
            logger.info("Invoice %s is now paid", invoice.number)
            with translate_db_errors("create_payment", invoice.id):
                paid_invoice = self.queries.get_invoice_by_id(invoice.id)
            self.event_bus.publish(InvoicePaid.create(invoice=paid_invoice, payment=payment))

        return payment

    def list_payments(self, invoice_id: UUID) -> list[Payment]:
        """Payments for an invoice, most recent first."""
        return self.queries.get_payments_by_invoice_id(invoice_id)
