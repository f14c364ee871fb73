"""Customer segments and segment membership."""

import logging
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction
from core.exceptions import translate_db_errors
from core.models import Customer, Segment, SegmentCreate
from utils.timezone import now_utc
from utils.user_context import resolve_actor

logger = logging.getLogger(__name__)


class SegmentService:
    """Service for customer segments."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger):
        self.postgres = postgres
        self.audit = audit

    def create_segment(self, data: SegmentCreate, actor_id: UUID | None = None) -> Segment:
        """
        Create a segment.

        Raises:
            ConflictError: If a segment with this name exists
        """
        actor = resolve_actor(actor_id)
        segment_id = uuid4()
        now = now_utc()

        with translate_db_errors("create_segment", segment_id):
            row = self.postgres.execute_returning(
                """
                INSERT INTO customer_segments (id, name, description, criteria, created_by, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING *
                """,
                (
                    segment_id, data.name, data.description,
                    Json(data.criteria) if data.criteria is not None else None,
                    actor, now, now
                )
            )[0]

        segment = Segment.model_validate(row)

        self.audit.log_change(
            entity_type="customer_segment",
            entity_id=segment.id,
            action=AuditAction.CREATE,
            changes={"created": data.model_dump(mode="json", exclude_none=True)},
            user_id=actor
        )

        return segment

    def list_segments(self, limit: int = 50, offset: int = 0) -> tuple[list[Segment], int]:
        """Segments by name, with total count."""
        total = self.postgres.execute_scalar("SELECT COUNT(*) FROM customer_segments")
        rows = self.postgres.execute(
            "SELECT * FROM customer_segments ORDER BY name LIMIT %s OFFSET %s",
            (limit, offset)
        )
        return [Segment.model_validate(row) for row in rows], total or 0

    def add_to_segment(self, segment_id: UUID, customer_id: UUID, actor_id: UUID | None = None) -> bool:
        """
        Add a customer to a segment.

        Returns:
            True if added, False if the customer was already a member

        Raises:
            BusinessRuleError: If the segment or customer does not exist
        """
        actor = resolve_actor(actor_id)

        with translate_db_errors("add_to_segment", segment_id):
            rows = self.postgres.execute_returning(
                """
                INSERT INTO customer_segment_members (segment_id, customer_id, added_by, added_at)
                VALUES (%s, %s, %s, %s)
                ON CONFLICT (segment_id, customer_id) DO NOTHING
                RETURNING segment_id
                """,
                (segment_id, customer_id, actor, now_utc())
            )

        if not rows:
            return False

        self.audit.log_change(
            entity_type="customer_segment",
            entity_id=segment_id,
            action=AuditAction.UPDATE,
            changes={"members": {"old": None, "new": str(customer_id)}},
            user_id=actor
        )
        return True

    def list_segment_customers(
        self,
        segment_id: UUID,
        limit: int = 50,
        offset: int = 0
    ) -> tuple[list[Customer], int]:
        """Customers in a segment, by name, with total count."""
        total = self.postgres.execute_scalar(
            "SELECT COUNT(*) FROM customer_segment_members WHERE segment_id = %s",
            (segment_id,)
        )
        rows = self.postgres.execute(
            """
            SELECT c.* FROM customers c
            JOIN customer_segment_members m ON m.customer_id = c.id
            WHERE m.segment_id = %s
            ORDER BY c.name
            LIMIT %s OFFSET %s
            """,
            (segment_id, limit, offset)
        )
        return [Customer.model_validate(row) for row in rows], total or 0
