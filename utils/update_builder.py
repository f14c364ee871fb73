"""
Partial UPDATE statement builder.

Maps the optional fields of an update model onto a fixed, allow-listed set of
columns. Column names only ever come from the allow-list, never from input.
"""

import logging
from typing import Any, Iterable

from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class UpdateBuilder:
    """
    Builds `UPDATE <table> SET ... WHERE id = %s RETURNING *` for one table.

    Usage:
        _UPDATE = UpdateBuilder("customers", {"name", "email", "phone"})

        statement = _UPDATE.build(customer_id, data.model_dump(exclude_none=True))
        if statement is None:
            return current  # Nothing to update
        query, params = statement
    """

    def __init__(self, table: str, columns: Iterable[str], touch_updated_at: bool = True):
        self.table = table
        self.columns = frozenset(columns)
        self.touch_updated_at = touch_updated_at

    def build(self, entity_id: Any, updates: dict[str, Any]) -> tuple[str, tuple] | None:
        """
        Build the statement for the allow-listed subset of `updates`.

        Unknown fields are logged and dropped.

        Returns:
            (query, params), or None if no allow-listed field is present.
        """
        for field in updates:
            if field not in self.columns:
                logger.warning(
                    "Attempted to update unknown field '%s' on %s %s",
                    field, self.table, entity_id,
                )

        # Sorted so the same update always produces the same statement
        valid = sorted((k, v) for k, v in updates.items() if k in self.columns)
        if not valid:
            return None

        set_parts = [f"{column} = %s" for column, _ in valid]
        params: list[Any] = [value for _, value in valid]

        if self.touch_updated_at:
            set_parts.append("updated_at = %s")
            params.append(now_utc())

        params.append(entity_id)

        query = (
            f"UPDATE {self.table} "
            f"SET {', '.join(set_parts)} "
            f"WHERE id = %s "
            f"RETURNING *"
        )
        return query, tuple(params)
