"""
Append-only audit trail for entity mutations.

Each row records who changed what: actor, entity type and id, action and a
JSON payload of the changes. Ledger writes pass their open transaction so
the audit row commits or rolls back together with the write it describes.
"""

import logging
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient, Transaction
from utils.timezone import now_utc
from utils.user_context import resolve_actor

logger = logging.getLogger(__name__)


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Diff two JSON-ready entity states.

    Returns:
        {field: {"old": ..., "new": ...}} for every field that differs,
        ignoring exclude_fields (default {"updated_at"}).
    """
    exclude = exclude_fields or {"updated_at"}
    return {
        key: {"old": old.get(key), "new": new.get(key)}
        for key in sorted(set(old) | set(new))
        if key not in exclude and old.get(key) != new.get(key)
    }


class AuditLogger:
    """
    Writes and reads audit_log rows.

    Pass Pydantic data through model_dump(mode="json") so UUIDs, dates and
    Decimals serialize.

    Usage:
        audit = AuditLogger(postgres)
        audit.log_change("customer", customer.id, AuditAction.CREATE,
                         {"created": data.model_dump(mode="json")})

        with postgres.transaction() as tx:
            ...
            audit.log_change("invoice", invoice_id, AuditAction.CREATE, changes, tx=tx)
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        changes: dict[str, Any],
        user_id: UUID | None = None,
        tx: Transaction | None = None
    ) -> None:
        """
        Record one mutation.

        Args:
            entity_type: "invoice", "payment", "customer", ...
            entity_id: ID of the changed entity
            action: CREATE, UPDATE or DELETE
            changes: CREATE {"created": {...}}, UPDATE {field: {"old", "new"}},
                DELETE {"deleted": {...}}
            user_id: Actor (defaults to current context)
            tx: Open transaction to write through; autocommits when omitted
        """
        actor = resolve_actor(user_id)
        executor = tx if tx is not None else self.postgres

        executor.execute(
            """
            INSERT INTO audit_log (id, user_id, entity_type, entity_id, action, changes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (uuid4(), actor, entity_type, entity_id, action.value, Json(changes), now_utc())
        )
        logger.debug("Audit %s %s %s by %s", action.value, entity_type, entity_id, actor)

    def get_entity_history(self, entity_type: str, entity_id: UUID) -> list[dict[str, Any]]:
        """Audit entries for one entity, newest first."""
        return self.postgres.execute(
            """
            SELECT id, user_id, entity_type, entity_id, action, changes, created_at
            FROM audit_log
            WHERE entity_type = %s AND entity_id = %s
            ORDER BY created_at DESC
            """,
            (entity_type, entity_id)
        )
