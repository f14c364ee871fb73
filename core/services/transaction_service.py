"""Income and expense bookkeeping."""

import logging
from typing import Any
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction
from core.exceptions import translate_db_errors
from core.models import Transaction, TransactionCreate, TransactionFilter
from utils.timezone import now_utc
from utils.user_context import resolve_actor

logger = logging.getLogger(__name__)


class TransactionService:
    """Service for income/expense transactions."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger):
        self.postgres = postgres
        self.audit = audit

    def create_transaction(self, data: TransactionCreate, actor_id: UUID | None = None) -> Transaction:
        """Record an income or expense."""
        actor = resolve_actor(actor_id)
        transaction_id = uuid4()
        now = now_utc()

        with translate_db_errors("create_transaction", transaction_id):
            row = self.postgres.execute_returning(
                """
                INSERT INTO transactions (
                    id, type, amount, category, description, date,
                    reference_no, attachment_url, created_by, created_at, updated_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING *
                """,
                (
                    transaction_id, data.type.value, data.amount, data.category, data.description,
                    data.date, data.reference_no, data.attachment_url, actor, now, now
                )
            )[0]

        transaction = Transaction.model_validate(row)
        logger.info("Recorded %s transaction %s of %s", transaction.type.value, transaction.id, transaction.amount)

        self.audit.log_change(
            entity_type="transaction",
            entity_id=transaction.id,
            action=AuditAction.CREATE,
            changes={"created": data.model_dump(mode="json", exclude_none=True)},
            user_id=actor
        )

        return transaction

    def list_transactions(
        self,
        filters: TransactionFilter | None = None,
        page: int | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Transaction], int]:
        """
        List transactions, newest date first.

        Args:
            filters: Optional type, date range (inclusive) and category
            page: 1-based page number; when given it sets the offset
            limit: Page size
            offset: Rows to skip

        Returns:
            (transactions, total matching count)
        """
        filters = filters or TransactionFilter()
        conditions = []
        params: list[Any] = []

        if filters.type is not None:
            conditions.append("type = %s")
            params.append(filters.type.value)
        if filters.start_date is not None:
            conditions.append("date >= %s")
            params.append(filters.start_date)
        if filters.end_date is not None:
            conditions.append("date <= %s")
            params.append(filters.end_date)
        if filters.category:
            conditions.append("category = %s")
            params.append(filters.category)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        if page is not None:
            offset = (max(page, 1) - 1) * limit

        total = self.postgres.execute_scalar(
            f"SELECT COUNT(*) FROM transactions {where}",
            tuple(params)
        )
        rows = self.postgres.execute(
            f"""
            SELECT * FROM transactions
            {where}
            ORDER BY date DESC, created_at DESC
            LIMIT %s OFFSET %s
            """,
            tuple(params + [limit, offset])
        )

        return [Transaction.model_validate(row) for row in rows], total or 0
