"""
Read side of the invoice/payment ledger.

Assembles an invoice with its ordered items, and the payments recorded
against an invoice. Reads go through an open transaction when one is given
(the payment recorder locks the invoice row this way), otherwise they run
on a pooled connection against committed data.
"""

import logging
from uuid import UUID

from clients.postgres_client import PostgresClient, Transaction
from core.exceptions import NotFoundError
from core.models import Invoice, InvoiceItem, InvoiceStatus, Payment

logger = logging.getLogger(__name__)


class LedgerQueries:
    """Canonical reads of invoices and payments."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def get_invoice_by_id(
        self,
        invoice_id: UUID,
        tx: Transaction | None = None,
        for_update: bool = False,
    ) -> Invoice:
        """
        Load an invoice with its items ordered by position.

        Args:
            invoice_id: Invoice UUID
            tx: Transaction to read through; required for for_update
            for_update: Lock the invoice row until tx ends

        Raises:
            NotFoundError: If no invoice has this id
        """
        if for_update and tx is None:
            raise ValueError("for_update requires an open transaction")

        executor = tx if tx is not None else self.postgres
        query = "SELECT * FROM invoices WHERE id = %s"
        if for_update:
            query += " FOR UPDATE"

        row = executor.execute_single(query, (invoice_id,))
        if row is None:
            raise NotFoundError(
                f"Invoice {invoice_id} not found",
                operation="get_invoice_by_id",
                entity_id=invoice_id,
            )

        item_rows = executor.execute(
            "SELECT * FROM invoice_items WHERE invoice_id = %s ORDER BY position",
            (invoice_id,)
        )

        return Invoice.model_validate({
            **row,
            "items": [InvoiceItem.model_validate(item) for item in item_rows],
        })

    def get_payments_by_invoice_id(self, invoice_id: UUID) -> list[Payment]:
        """
        Payments for an invoice, most recent payment_date first.

        An unknown invoice simply has no payments.
        """
        rows = self.postgres.execute(
            """
            SELECT * FROM payments
            WHERE invoice_id = %s
            ORDER BY payment_date DESC, created_at DESC
            """,
            (invoice_id,)
        )
        return [Payment.model_validate(row) for row in rows]

    def list_invoices(
        self,
        customer_id: UUID | None = None,
        status: InvoiceStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Invoice]:
        """
        List invoices without items, newest issue date first.

        Args:
            customer_id: Only this customer's invoices
            status: Only invoices in this status
            limit: Maximum results
            offset: Offset for pagination
        """
        conditions = []
        params: list = []

        if customer_id is not None:
            conditions.append("customer_id = %s")
            params.append(customer_id)
        if status is not None:
            conditions.append("status = %s")
            params.append(status.value)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.extend([limit, offset])

        rows = self.postgres.execute(
            f"""
            SELECT * FROM invoices
            {where}
            ORDER BY issue_date DESC, number DESC
            LIMIT %s OFFSET %s
            """,
            tuple(params)
        )
        return [Invoice.model_validate(row) for row in rows]
