"""
Customer interaction log.

Contact history per customer: calls, emails, meetings, notes. Entries are
append-only; the payment handler writes one when an invoice is paid.
"""

import logging
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction
from core.exceptions import translate_db_errors
from core.models import Interaction, InteractionCreate
from utils.timezone import now_utc
from utils.user_context import resolve_actor

logger = logging.getLogger(__name__)


class InteractionService:
    """Service for customer interactions."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger):
        self.postgres = postgres
        self.audit = audit

    def create_interaction(self, data: InteractionCreate, actor_id: UUID | None = None) -> Interaction:
        """
        Log an interaction with a customer.

        Raises:
            BusinessRuleError: If the customer does not exist
        """
        actor = resolve_actor(actor_id)
        interaction_id = uuid4()
        now = now_utc()

        with translate_db_errors("create_interaction", interaction_id):
            row = self.postgres.execute_returning(
                """
                INSERT INTO customer_interactions (
                    id, customer_id, type, summary, details,
                    interaction_date, next_follow_up_date,
                    created_by, created_at, updated_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING *
                """,
                (
                    interaction_id, data.customer_id, data.type.value, data.summary, data.details,
                    data.interaction_date or now, data.next_follow_up_date,
                    actor, now, now
                )
            )[0]

        interaction = Interaction.model_validate(row)

        self.audit.log_change(
            entity_type="customer_interaction",
            entity_id=interaction.id,
            action=AuditAction.CREATE,
            changes={"created": data.model_dump(mode="json", exclude_none=True)},
            user_id=actor
        )

        return interaction

    def list_interactions(
        self,
        customer_id: UUID,
        limit: int = 50,
        offset: int = 0
    ) -> tuple[list[Interaction], int]:
        """Interactions for a customer, most recent first, with total count."""
        total = self.postgres.execute_scalar(
            "SELECT COUNT(*) FROM customer_interactions WHERE customer_id = %s",
            (customer_id,)
        )
        rows = self.postgres.execute(
            """
            SELECT * FROM customer_interactions
            WHERE customer_id = %s
            ORDER BY interaction_date DESC
            LIMIT %s OFFSET %s
            """,
            (customer_id, limit, offset)
        )
        return [Interaction.model_validate(row) for row in rows], total or 0
