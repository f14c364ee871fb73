"""
Customer service for CRUD operations.

Handles customer lifecycle: create, read, update, delete, list and search.
Every mutation is written to the audit log.
"""

import logging
from typing import Any
from uuid import UUID, uuid4

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger, AuditAction, compute_changes
from core.event_bus import EventBus
from core.events import CustomerCreated
from core.exceptions import NotFoundError, translate_db_errors
from core.models import Customer, CustomerCreate, CustomerUpdate, CustomerType
from utils.timezone import now_utc
from utils.update_builder import UpdateBuilder
from utils.user_context import resolve_actor

logger = logging.getLogger(__name__)

_ADDRESS_COLUMNS = ("address_line1", "address_line2", "city", "state", "postal_code", "country")

_UPDATE = UpdateBuilder("customers", {
    "name", "email", "phone", *_ADDRESS_COLUMNS,
    "company_name", "industry", "annual_revenue", "employee_count",
    "type", "status", "notes",
})

_SEARCH_CONDITION = "(name ILIKE %s OR email ILIKE %s OR phone ILIKE %s OR company_name ILIKE %s)"


def _customer_columns(data: CustomerCreate | CustomerUpdate, exclude_none: bool) -> dict[str, Any]:
    """Model fields as column values, with the nested address flattened."""
    columns = data.model_dump(mode="json", exclude={"address"}, exclude_none=exclude_none)
    if data.address is not None:
        columns.update(data.address.to_columns())
    elif not exclude_none:
        columns.update({column: None for column in _ADDRESS_COLUMNS})
    return columns


class CustomerService:
    """Service for customer operations."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger, event_bus: EventBus | None = None):
        self.postgres = postgres
        self.audit = audit
        self.event_bus = event_bus

    def create(self, data: CustomerCreate, actor_id: UUID | None = None) -> Customer:
        """
        Create a new customer.

        Args:
            data: Customer creation data
            actor_id: Acting user (defaults to current context)

        Returns:
            Created customer
        """
        actor = resolve_actor(actor_id)
        customer_id = uuid4()
        now = now_utc()
        columns = _customer_columns(data, exclude_none=False)

        with translate_db_errors("create_customer", customer_id):
            row = self.postgres.execute_returning(
                """
                INSERT INTO customers (
                    id, name, email, phone,
                    address_line1, address_line2, city, state, postal_code, country,
                    company_name, industry, annual_revenue, employee_count,
                    type, status, notes, created_by, created_at, updated_at
                ) VALUES (
                    %s, %s, %s, %s,
                    %s, %s, %s, %s, %s, %s,
                    %s, %s, %s, %s,
                    %s, %s, %s, %s, %s, %s
                )
                RETURNING *
                """,
                (
                    customer_id, columns["name"], columns["email"], columns["phone"],
                    columns["address_line1"], columns["address_line2"], columns["city"],
                    columns["state"], columns["postal_code"], columns["country"],
                    columns["company_name"], columns["industry"], columns["annual_revenue"],
                    columns["employee_count"], columns["type"], columns["status"],
                    columns["notes"], actor, now, now
                )
            )[0]

        customer = Customer.model_validate(row)

        self.audit.log_change(
            entity_type="customer",
            entity_id=customer.id,
            action=AuditAction.CREATE,
            changes={"created": data.model_dump(mode="json", exclude_none=True)},
            user_id=actor
        )

        if self.event_bus is not None:
            self.event_bus.publish(CustomerCreated.create(customer=customer))

        return customer

    def get_by_id(self, customer_id: UUID) -> Customer | None:
        """
        Get customer by ID.

        Returns:
            Customer if found, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM customers WHERE id = %s",
            (customer_id,)
        )

        if row is None:
            return None

        return Customer.model_validate(row)

    def update(self, customer_id: UUID, data: CustomerUpdate, actor_id: UUID | None = None) -> Customer:
        """
        Update customer fields.

        Args:
            customer_id: Customer UUID
            data: Fields to update (only non-None fields are changed)
            actor_id: Acting user (defaults to current context)

        Returns:
            Updated customer

        Raises:
            NotFoundError: If customer not found
        """
        current = self.get_by_id(customer_id)
        if current is None:
            raise NotFoundError(
                f"Customer {customer_id} not found",
                operation="update_customer",
                entity_id=customer_id,
            )

        statement = _UPDATE.build(customer_id, _customer_columns(data, exclude_none=True))
        if statement is None:
            return current  # Nothing to update

        query, params = statement
        with translate_db_errors("update_customer", customer_id):
            row = self.postgres.execute_returning(query, params)[0]

        updated = Customer.model_validate(row)

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if changes:
            self.audit.log_change(
                entity_type="customer",
                entity_id=customer_id,
                action=AuditAction.UPDATE,
                changes=changes,
                user_id=actor_id
            )

        return updated

    def delete(self, customer_id: UUID, actor_id: UUID | None = None) -> bool:
        """
        Delete a customer.

        Returns:
            True if deleted, False if not found

        Raises:
            BusinessRuleError: If invoices still reference the customer
        """
        current = self.get_by_id(customer_id)
        if current is None:
            return False

        with translate_db_errors("delete_customer", customer_id):
            self.postgres.execute("DELETE FROM customers WHERE id = %s", (customer_id,))

        self.audit.log_change(
            entity_type="customer",
            entity_id=customer_id,
            action=AuditAction.DELETE,
            changes={"deleted": current.model_dump(mode="json")},
            user_id=actor_id
        )

        return True

    def list_all(
        self,
        type: CustomerType | None = None,
        search: str | None = None,
        limit: int = 50,
        offset: int = 0
    ) -> tuple[list[Customer], int]:
        """
        List customers with optional type filter and text search.

        Args:
            type: Only customers of this type
            search: Case-insensitive partial match on name, email, phone, company
            limit: Maximum results (default 50)
            offset: Offset for pagination

        Returns:
            (customers newest first, total matching count)
        """
        conditions = []
        params: list[Any] = []

        if type is not None:
            conditions.append("type = %s")
            params.append(type.value)
        if search:
            pattern = f"%{search}%"
            conditions.append(_SEARCH_CONDITION)
            params.extend([pattern] * 4)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        total = self.postgres.execute_scalar(
            f"SELECT COUNT(*) FROM customers {where}",
            tuple(params)
        )
        rows = self.postgres.execute(
            f"""
            SELECT * FROM customers
            {where}
            ORDER BY created_at DESC
            LIMIT %s OFFSET %s
            """,
            tuple(params + [limit, offset])
        )

        return [Customer.model_validate(row) for row in rows], total or 0

    def search(self, query: str, limit: int = 20, offset: int = 0) -> tuple[list[Customer], int]:
        """
        Search customers by name, email, phone or company name.

        Uses ILIKE for case-insensitive partial matching.
        """
        return self.list_all(search=query, limit=limit, offset=offset)
