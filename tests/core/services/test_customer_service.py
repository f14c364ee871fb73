"""Tests for CustomerService."""

from uuid import uuid4

import psycopg2.errors
import pytest

from core.exceptions import BusinessRuleError, NotFoundError


@pytest.fixture
def created_events():
    return []


@pytest.fixture
def customer_service(fake_db, created_events):
    from core.audit import AuditLogger
    from core.event_bus import EventBus
    from core.services.customer_service import CustomerService

    bus = EventBus()
    bus.subscribe("CustomerCreated", created_events.append)
    return CustomerService(fake_db, AuditLogger(fake_db), bus)


def _echo_customer(rows):
    """INSERT ... RETURNING * answered from the insert parameters."""
    def respond(params):
        return [rows.customer(id=params[0], name=params[1], email=params[2], city=params[6], type=params[14])]
    return respond


class TestCreate:

    def test_creates_audits_and_publishes(self, fake_db, rows, customer_service, created_events, as_test_user):
        from core.models import CustomerAddress, CustomerCreate

        fake_db.on("INSERT INTO customers", _echo_customer(rows))

        customer = customer_service.create(CustomerCreate(
            name="Acme",
            email="ops@example.com",
            type="business",
            address=CustomerAddress(line1="1 Main St", city="Springfield", country="US"),
        ))

        assert customer.name == "Acme"
        assert customer.city == "Springfield"
        params = fake_db.statements("INSERT INTO customers")[0].params
        assert params[17] == as_test_user
        [audit] = fake_db.statements("INSERT INTO audit_log")
        assert audit.params[2:5] == ("customer", customer.id, "create")
        assert created_events[0].customer == customer

    def test_missing_address_stored_as_nulls(self, fake_db, rows, customer_service, as_test_user):
        from core.models import CustomerCreate

        fake_db.on("INSERT INTO customers", _echo_customer(rows))

        customer_service.create(CustomerCreate(name="Solo"))

        params = fake_db.statements("INSERT INTO customers")[0].params
        assert params[4:10] == (None,) * 6

    def test_requires_actor(self, customer_service):
        from core.models import CustomerCreate

        with pytest.raises(RuntimeError):
            customer_service.create(CustomerCreate(name="Nobody"))


class TestGetUpdateDelete:

    def test_get_missing_returns_none(self, customer_service):
        assert customer_service.get_by_id(uuid4()) is None

    def test_update_changes_only_given_fields(self, fake_db, rows, customer_service, as_test_user):
        from core.models import CustomerUpdate

        current = rows.customer(name="Old Name")
        fake_db.on("SELECT * FROM customers WHERE id", [current])
        fake_db.on("UPDATE customers", [{**current, "name": "New Name"}])

        updated = customer_service.update(current["id"], CustomerUpdate(name="New Name"))

        assert updated.name == "New Name"
        update = fake_db.statements("UPDATE customers")[0]
        assert update.sql.startswith("UPDATE customers SET name = %s, updated_at = %s")
        [audit] = fake_db.statements("INSERT INTO audit_log")
        assert audit.params[4] == "update"

    def test_update_with_no_fields_returns_current(self, fake_db, rows, customer_service, as_test_user):
        from core.models import CustomerUpdate

        current = rows.customer()
        fake_db.on("SELECT * FROM customers WHERE id", [current])

        result = customer_service.update(current["id"], CustomerUpdate())

        assert result.id == current["id"]
        assert fake_db.statements("UPDATE customers") == []

    def test_update_missing_raises(self, customer_service, as_test_user):
        from core.models import CustomerUpdate

        with pytest.raises(NotFoundError):
            customer_service.update(uuid4(), CustomerUpdate(name="x"))

    def test_delete(self, fake_db, rows, customer_service, as_test_user):
        current = rows.customer()
        fake_db.on("SELECT * FROM customers WHERE id", [current])

        assert customer_service.delete(current["id"]) is True
        assert fake_db.statements("DELETE FROM customers")[0].params == (current["id"],)
        assert fake_db.statements("INSERT INTO audit_log")[0].params[4] == "delete"

    def test_delete_missing_returns_false(self, fake_db, customer_service, as_test_user):
        assert customer_service.delete(uuid4()) is False
        assert fake_db.statements("DELETE") == []

    def test_delete_with_invoices_is_business_rule_error(self, fake_db, rows, customer_service, as_test_user):
        current = rows.customer()
        fake_db.on("SELECT * FROM customers WHERE id", [current])
        fake_db.on("DELETE FROM customers", psycopg2.errors.ForeignKeyViolation())

        with pytest.raises(BusinessRuleError):
            customer_service.delete(current["id"])


class TestListAndSearch:

    def test_list_returns_page_and_total(self, fake_db, rows, customer_service):
        fake_db.on("SELECT COUNT(*) FROM customers", [{"count": 7}])
        fake_db.on("SELECT * FROM customers", [rows.customer(), rows.customer()])

        customers, total = customer_service.list_all(limit=2, offset=0)

        assert len(customers) == 2
        assert total == 7

    def test_search_matches_four_columns(self, fake_db, customer_service):
        customer_service.search("acme")

        count = fake_db.statements("COUNT(*)")[0]
        assert "name ILIKE %s OR email ILIKE %s OR phone ILIKE %s OR company_name ILIKE %s" in count.sql
        assert count.params == ("%acme%",) * 4

    def test_type_filter(self, fake_db, customer_service):
        from core.models import CustomerType

        customer_service.list_all(type=CustomerType.GOVERNMENT)

        listing = fake_db.statements("SELECT * FROM customers")[0]
        assert listing.params == ("government", 50, 0)
