"""
Invoice builder and status changes.

An invoice and all of its items are written in one transaction together with
its number allocation and audit row. Nothing is visible until every item is
in; any failure leaves no invoice, no items and no consumed number.
"""

import logging
from decimal import Decimal
from typing import Iterable, NamedTuple
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction
from core.event_bus import EventBus
from core.events import InvoiceCreated
from core.exceptions import NotFoundError, translate_db_errors
from core.models import Invoice, InvoiceCreate, InvoiceItemCreate, InvoiceStatus
from core.services.invoice_numbering import next_invoice_number
from core.services.ledger_queries import LedgerQueries
from utils.money import to_cents
from utils.timezone import now_utc
from utils.user_context import resolve_actor

logger = logging.getLogger(__name__)


class InvoiceTotals(NamedTuple):
    """Computed money for a set of items. amounts[i] belongs to items[i]."""

    amounts: list[Decimal]
    subtotal: Decimal
    tax_total: Decimal
    total: Decimal


def compute_totals(items: Iterable[InvoiceItemCreate]) -> InvoiceTotals:
    """
    Compute item amounts and invoice totals.

    Item amount is quantity * unit_price to the cent, and subtotal is the sum
    of those stored amounts. Tax total is rounded once over the exact line
    values. Total is subtotal + tax total.
    """
    amounts = []
    tax_total = Decimal("0")

    for item in items:
        line = item.quantity * item.unit_price
        amounts.append(to_cents(line))
        tax_total += line * item.tax_rate

    subtotal = sum(amounts, Decimal("0.00"))
    tax_total = to_cents(tax_total)
    return InvoiceTotals(amounts, subtotal, tax_total, subtotal + tax_total)


class InvoiceService:
    """Service for creating invoices and changing their status."""

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

    def create_invoice(self, data: InvoiceCreate, actor_id: UUID | None = None) -> Invoice:
        """
        Create an invoice in DRAFT status with its items.

        Args:
            data: Validated invoice data (at least one item)
            actor_id: Acting user (defaults to current context)

        Returns:
            The stored invoice with items, as re-read after commit

        Raises:
            BusinessRuleError: Unknown customer or other constraint failure
            DatabaseError: Store failure; nothing was written
        """
        actor = resolve_actor(actor_id)
        totals = compute_totals(data.items)
        invoice_id = uuid4()

        with translate_db_errors("create_invoice", invoice_id):
            with self.postgres.transaction() as tx:
                number = next_invoice_number(tx)
                now = now_utc()

                tx.execute(
                    """
                    INSERT INTO invoices (
                        id, customer_id, number, issue_date, due_date,
                        subtotal, tax_total, total, notes, terms,
                        status, created_by, created_at, updated_at
                    ) VALUES (
                        %s, %s, %s, %s, %s,
                        %s, %s, %s, %s, %s,
                        %s, %s, %s, %s
                    )
                    """,
                    (
                        invoice_id, data.customer_id, number, data.issue_date, data.due_date,
                        totals.subtotal, totals.tax_total, totals.total, data.notes, data.terms,
                        InvoiceStatus.DRAFT.value, actor, now, now
                    )
                )

                for position, (item, amount) in enumerate(zip(data.items, totals.amounts)):
                    self._insert_item(tx, invoice_id, position, item, amount)

                self.audit.log_change(
                    entity_type="invoice",
                    entity_id=invoice_id,
                    action=AuditAction.CREATE,
                    changes={
                        "created": {
                            "number": number,
                            "customer_id": str(data.customer_id),
                            "item_count": len(data.items),
                            "subtotal": str(totals.subtotal),
                            "tax_total": str(totals.tax_total),
                            "total": str(totals.total),
                        }
                    },
                    user_id=actor,
                    tx=tx,
                )

        logger.info("Created invoice %s (%s) total=%s", number, invoice_id, totals.total)

        with translate_db_errors("create_invoice", invoice_id):
            invoice = self.queries.get_invoice_by_id(invoice_id)
        self.event_bus.publish(InvoiceCreated.create(invoice=invoice))
        return invoice

    def _insert_item(self, tx, invoice_id: UUID, position: int, item: InvoiceItemCreate, amount: Decimal) -> None:
        tx.execute(
            """
            INSERT INTO invoice_items (
                id, invoice_id, position, description,
                quantity, unit_price, tax_rate, amount
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                uuid4(), invoice_id, position, item.description,
                item.quantity, item.unit_price, item.tax_rate, amount
            )
        )

    def update_invoice_status(
        self,
        invoice_id: UUID,
        status: InvoiceStatus,
        actor_id: UUID | None = None,
    ) -> Invoice:
        """
        Set an invoice's status (sent, overdue, cancelled, ...).

        Raises:
            NotFoundError: If the invoice does not exist
        """
        actor = resolve_actor(actor_id)

        with translate_db_errors("update_invoice_status", invoice_id):
            with self.postgres.transaction() as tx:
                row = tx.execute_single(
                    "SELECT status FROM invoices WHERE id = %s FOR UPDATE",
                    (invoice_id,)
                )
                if row is None:
                    raise NotFoundError(
                        f"Invoice {invoice_id} not found",
                        operation="update_invoice_status",
                        entity_id=invoice_id,
                    )

                old_status = row["status"]
                if old_status != status.value:
                    tx.execute(
                        "UPDATE invoices SET status = %s, updated_at = %s WHERE id = %s",
                        (status.value, now_utc(), invoice_id)
                    )
                    self.audit.log_change(
                        entity_type="invoice",
                        entity_id=invoice_id,
                        action=AuditAction.UPDATE,
                        changes={"status": {"old": old_status, "new": status.value}},
                        user_id=actor,
                        tx=tx,
                    )
                    logger.info("Invoice %s status %s -> %s", invoice_id, old_status, status.value)

            return self.queries.get_invoice_by_id(invoice_id)

    def get_invoice(self, invoice_id: UUID) -> Invoice:
        """Invoice with items. Raises NotFoundError if absent."""
        return self.queries.get_invoice_by_id(invoice_id)

    def list_invoices(
        self,
        customer_id: UUID | None = None,
        status: InvoiceStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Invoice]:
        """List invoices without items, newest issue date first."""
        return self.queries.list_invoices(customer_id, status, limit, offset)
