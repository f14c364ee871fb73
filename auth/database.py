"""Database operations for users.

Password hashes are read only by get_credentials(); every other read
returns a User without them.
"""

import logging
from typing import Any
from uuid import UUID, uuid4

import psycopg2.errors

from clients.postgres_client import PostgresClient
from auth.types import User
from core.exceptions import ConflictError, translate_db_errors
from utils.timezone import now_utc
from utils.update_builder import UpdateBuilder

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, username, email, role, status, last_login_at, created_at, updated_at"

_UPDATE = UpdateBuilder("users", {"username", "email", "password_hash", "role", "status"})

# Unique constraint name -> field reported to the client
_UNIQUE_FIELDS = {
    "users_username_key": "username",
    "users_email_key": "email",
}


def _duplicate_error(e: psycopg2.errors.UniqueViolation, operation: str) -> ConflictError:
    field = _UNIQUE_FIELDS.get(getattr(e.diag, "constraint_name", None), "username or email")
    return ConflictError(f"A user with this {field} already exists", operation=operation)


class AuthDatabase:
    """Database operations for authentication and user management."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def get_credentials(self, identifier: str) -> tuple[User, str] | None:
        """Find user by username or email (case-insensitive) with their password hash."""
        row = self._db.execute_single(
            f"""SELECT {_USER_COLUMNS}, password_hash
                FROM users
                WHERE lower(username) = lower(%s) OR email = lower(%s)""",
            (identifier, identifier),
        )
        if row is None:
            return None
        return User.model_validate(row), row["password_hash"]

    def get_user_by_id(self, user_id: UUID) -> User | None:
        """Find user by ID."""
        row = self._db.execute_single(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s",
            (user_id,),
        )
        if row is None:
            return None
        return User.model_validate(row)

    def list_users(self, limit: int = 50, offset: int = 0) -> tuple[list[User], int]:
        """Users by username, with total count."""
        total = self._db.execute_scalar("SELECT COUNT(*) FROM users")
        rows = self._db.execute(
            f"SELECT {_USER_COLUMNS} FROM users ORDER BY username LIMIT %s OFFSET %s",
            (limit, offset),
        )
        return [User.model_validate(row) for row in rows], total or 0

    def create_user(self, username: str, email: str, password_hash: str, role: str) -> User:
        """
        Create new user (email lowercased).

        Raises:
            ConflictError: If username or email is taken
        """
        now = now_utc()
        with translate_db_errors("create_user"):
            try:
                rows = self._db.execute_returning(
                    f"""INSERT INTO users (id, username, email, password_hash, role, status, created_at, updated_at)
                        VALUES (%s, %s, lower(%s), %s, %s, 'active', %s, %s)
                        RETURNING {_USER_COLUMNS}""",
                    (uuid4(), username, email, password_hash, role, now, now),
                )
            except psycopg2.errors.UniqueViolation as e:
                raise _duplicate_error(e, "create_user") from e
        return User.model_validate(rows[0])

    def update_user(self, user_id: UUID, updates: dict[str, Any]) -> User | None:
        """
        Apply column updates.

        Returns:
            Updated user, or None if not found

        Raises:
            ConflictError: If the new username or email is taken
        """
        if "email" in updates:
            updates = {**updates, "email": updates["email"].lower()}

        statement = _UPDATE.build(user_id, updates)
        if statement is None:
            return self.get_user_by_id(user_id)

        query, params = statement
        with translate_db_errors("update_user", user_id):
            try:
                rows = self._db.execute_returning(query, params)
            except psycopg2.errors.UniqueViolation as e:
                raise _duplicate_error(e, "update_user") from e
        if not rows:
            return None
        return User.model_validate(rows[0])

    def update_last_login(self, user_id: UUID) -> None:
        """Update last_login_at to current time."""
        self._db.execute(
            "UPDATE users SET last_login_at = %s WHERE id = %s",
            (now_utc(), user_id),
        )

    def delete_user(self, user_id: UUID) -> bool:
        """Permanently delete user.

        Returns:
            True if user was found and deleted, False if not found.
        """
        with translate_db_errors("delete_user", user_id):
            rows = self._db.execute_returning(
                "DELETE FROM users WHERE id = %s RETURNING id",
                (user_id,),
            )
        return len(rows) > 0
