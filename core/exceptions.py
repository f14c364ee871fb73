"""
Typed domain errors.

Three kinds reach callers: NotFoundError, BusinessRuleError (with its
ConflictError subclass) and DatabaseError. Raw psycopg2 exceptions never
leave a service; translate_db_errors() maps them at the service boundary.
Every error carries the operation name and, where known, the entity id.
"""

import logging
from contextlib import contextmanager
from typing import Any

import psycopg2
import psycopg2.errors

logger = logging.getLogger(__name__)


class ERPError(Exception):
    """Base class for all domain errors."""

    code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        entity_id: Any = None,
        code: str | None = None,
    ):
        self.message = message
        self.operation = operation
        self.entity_id = entity_id
        if code is not None:
            self.code = code
        super().__init__(message)

    def context(self) -> dict[str, Any]:
        """Structured context for log records."""
        return {
            "error": type(self).__name__,
            "code": self.code,
            "operation": self.operation,
            "entity_id": str(self.entity_id) if self.entity_id is not None else None,
        }


class NotFoundError(ERPError):
    """Referenced entity does not exist."""

    code = "NOT_FOUND"


class BusinessRuleError(ERPError):
    """
    A business rule was violated.

    Raised before (or instead of) the write it guards. When raised inside a
    transaction the whole transaction is rolled back first.
    """

    code = "VALIDATION_ERROR"


class ConflictError(BusinessRuleError):
    """Write conflicts with an existing record (unique constraint)."""

    code = "ALREADY_EXISTS"


class DatabaseError(ERPError):
    """Store failure not otherwise classified (connectivity, aborted transaction)."""

    code = "DATABASE_ERROR"


@contextmanager
def translate_db_errors(operation: str, entity_id: Any = None):
    """
    Map psycopg2 failures raised inside the block to domain errors.

    Domain errors pass through untouched.

    Usage:
        with translate_db_errors("create_invoice"):
            with self.postgres.transaction() as tx:
                ...
    """
    try:
        yield
    except psycopg2.errors.UniqueViolation as e:
        logger.warning("%s: unique violation (%s)", operation, getattr(e.diag, "constraint_name", None))
        raise ConflictError(
            "A record with this unique identifier already exists",
            operation=operation,
            entity_id=entity_id,
        ) from e
    except psycopg2.errors.ForeignKeyViolation as e:
        logger.warning("%s: foreign key violation", operation)
        raise BusinessRuleError(
            "Referenced record does not exist",
            operation=operation,
            entity_id=entity_id,
        ) from e
    except (psycopg2.errors.NotNullViolation, psycopg2.errors.CheckViolation) as e:
        logger.warning("%s: constraint violation", operation)
        raise BusinessRuleError(
            "Value violates a data constraint",
            operation=operation,
            entity_id=entity_id,
        ) from e
    except psycopg2.Error as e:
        logger.error("%s failed: %s", operation, e)
        raise DatabaseError(
            f"Database error during {operation}",
            operation=operation,
            entity_id=entity_id,
        ) from e
