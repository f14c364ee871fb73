"""User activity log.

Append-only record of logins, token refreshes and user management, kept in
user_activities. Failed logins for unknown identifiers have no user_id.
"""

from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from auth.types import UserActivity
from utils.timezone import now_utc


class ActivityAction(Enum):
    """User activity types."""

    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    RATE_LIMITED = "rate_limited"
    TOKEN_REFRESHED = "token_refreshed"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"


class ActivityLogger:
    """Writes and reads user_activities rows."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def log(
        self,
        action: ActivityAction,
        user_id: UUID | None = None,
        ip_address: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Record one activity."""
        self._db.execute(
            """INSERT INTO user_activities (id, user_id, action, ip_address, details, created_at)
               VALUES (%s, %s, %s, %s, %s, %s)""",
            (
                uuid4(),
                user_id,
                action.value,
                ip_address,
                Json(details) if details else None,
                now_utc(),
            ),
        )

    def list_for_user(self, user_id: UUID, limit: int = 10, offset: int = 0) -> list[UserActivity]:
        """A user's activities, newest first."""
        rows = self._db.execute(
            """SELECT id, user_id, action, ip_address, details, created_at
               FROM user_activities
               WHERE user_id = %s
               ORDER BY created_at DESC
               LIMIT %s OFFSET %s""",
            (user_id, limit, offset),
        )
        return [
            UserActivity.model_validate({
                **row,
                "ip_address": str(row["ip_address"]) if row["ip_address"] else None,
            })
            for row in rows
        ]
