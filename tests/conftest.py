"""Shared test fixtures for the ERP test suite.

Unit tests run against FakePostgres, which records every statement and
answers from SQL-fragment rules. Tests that need a real PostgreSQL live in
tests/integration and are skipped when no database is reachable.
"""

from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env")

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from utils.timezone import now_utc
from utils.user_context import user_context, clear_current_user


# =============================================================================
# TEST USER CONSTANTS
# =============================================================================

# Primary test user - use for single-user tests
TEST_USER_ID = UUID("00000000-0000-0000-0000-000000000001")

# Secondary test user - use where two actors matter
TEST_USER_B_ID = UUID("00000000-0000-0000-0000-000000000002")


# =============================================================================
# USER CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_user_context():
    """Ensure clean user context before and after each test."""
    clear_current_user()
    yield
    clear_current_user()


@pytest.fixture
def test_user_id() -> UUID:
    """The primary test user's ID."""
    return TEST_USER_ID


@pytest.fixture
def test_user_b_id() -> UUID:
    """The secondary test user's ID."""
    return TEST_USER_B_ID


@pytest.fixture
def as_test_user(test_user_id):
    """Run the test as the primary user with the admin role."""
    with user_context(test_user_id, "admin"):
        yield test_user_id


# =============================================================================
# FAKE DATABASE
# =============================================================================


def _normalize(query: str) -> str:
    return " ".join(query.split())


class FakeTransaction:
    """Transaction double; statements go to the owning FakePostgres."""

    def __init__(self, db: "FakePostgres"):
        self._db = db

    def execute(self, query, params=None):
        return self._db._respond(query, params, in_transaction=True)

    def execute_single(self, query, params=None):
        rows = self.execute(query, params)
        return rows[0] if rows else None

    def execute_scalar(self, query, params=None):
        row = self.execute_single(query, params)
        return next(iter(row.values())) if row else None

    def execute_returning(self, query, params=None):
        return self.execute(query, params)


class FakePostgres:
    """
    PostgresClient double.

    Usage:
        fake_db.on("FROM invoices WHERE id", [invoice_row])
        fake_db.on("INSERT INTO payments", lambda params: [...])
        fake_db.on("INSERT INTO invoice_items", psycopg2.errors.CheckViolation())

    The most recently registered matching rule wins. Unmatched statements
    return no rows. An exception given as a result is raised.
    """

    def __init__(self):
        self.rules = []
        self.calls = []
        self.commits = 0
        self.rollbacks = 0

    def on(self, fragment: str, result) -> None:
        self.rules.append((fragment, result))

    def _respond(self, query, params, in_transaction):
        sql = _normalize(query)
        self.calls.append(SimpleNamespace(sql=sql, params=params, in_transaction=in_transaction))
        for fragment, result in reversed(self.rules):
            if fragment in sql:
                if isinstance(result, Exception):
                    raise result
                if callable(result):
                    result = result(params)
                return [dict(row) for row in result]
        return []

    def statements(self, fragment: str) -> list:
        """Recorded calls whose SQL contains fragment."""
        return [c for c in self.calls if fragment in c.sql]

    def execute(self, query, params=None):
        return self._respond(query, params, in_transaction=False)

    def execute_single(self, query, params=None):
        rows = self.execute(query, params)
        return rows[0] if rows else None

    def execute_scalar(self, query, params=None):
        row = self.execute_single(query, params)
        return next(iter(row.values())) if row else None

    def execute_returning(self, query, params=None):
        return self.execute(query, params)

    @contextmanager
    def transaction(self):
        try:
            yield FakeTransaction(self)
        except Exception:
            self.rollbacks += 1
            raise
        self.commits += 1


@pytest.fixture
def fake_db():
    """Fresh FakePostgres per test."""
    return FakePostgres()


# =============================================================================
# ROW FACTORIES
# =============================================================================


class Rows:
    """Builds database rows (dicts) with sensible defaults."""

    @staticmethod
    def customer(**overrides):
        now = now_utc()
        row = {
            "id": uuid4(), "name": "Acme Ltd", "email": "billing@acme.example.com", "phone": None,
            "address_line1": None, "address_line2": None, "city": None, "state": None,
            "postal_code": None, "country": None, "company_name": None, "industry": None,
            "annual_revenue": None, "employee_count": None, "type": "business",
            "status": "active", "notes": None, "created_by": TEST_USER_ID,
            "created_at": now, "updated_at": now,
        }
        row.update(overrides)
        return row

    @staticmethod
    def invoice(**overrides):
        now = now_utc()
        row = {
            "id": uuid4(), "customer_id": uuid4(), "number": f"INV{now.year}0001",
            "issue_date": date(2026, 3, 1), "due_date": date(2026, 3, 31),
            "subtotal": Decimal("5000.00"), "tax_total": Decimal("500.00"),
            "total": Decimal("5500.00"), "notes": None, "terms": None,
            "status": "draft", "created_by": TEST_USER_ID,
            "created_at": now, "updated_at": now,
        }
        row.update(overrides)
        return row

    @staticmethod
    def invoice_item(invoice_id, position=0, **overrides):
        row = {
            "id": uuid4(), "invoice_id": invoice_id, "position": position,
            "description": "Consulting", "quantity": Decimal("1.000"),
            "unit_price": Decimal("5000.00"), "tax_rate": Decimal("0.1000"),
            "amount": Decimal("5000.00"),
        }
        row.update(overrides)
        return row

    @staticmethod
    def payment(invoice_id, **overrides):
        now = now_utc()
        row = {
            "id": uuid4(), "invoice_id": invoice_id, "amount": Decimal("5500.00"),
            "payment_date": date(2026, 3, 10), "payment_method": "bank_transfer",
            "reference_no": None, "status": "completed", "notes": None,
            "created_by": TEST_USER_ID, "created_at": now, "updated_at": now,
        }
        row.update(overrides)
        return row

    @staticmethod
    def transaction(**overrides):
        now = now_utc()
        row = {
            "id": uuid4(), "type": "expense", "amount": Decimal("120.50"),
            "category": "office", "description": "Printer paper", "date": date(2026, 2, 14),
            "reference_no": None, "attachment_url": None, "created_by": TEST_USER_ID,
            "created_at": now, "updated_at": now,
        }
        row.update(overrides)
        return row

    @staticmethod
    def user(**overrides):
        now = now_utc()
        row = {
            "id": uuid4(), "username": "alice", "email": "alice@example.com",
            "role": "staff", "status": "active", "last_login_at": None,
            "created_at": now, "updated_at": now,
        }
        row.update(overrides)
        return row


@pytest.fixture
def rows():
    """Row factory namespace."""
    return Rows
