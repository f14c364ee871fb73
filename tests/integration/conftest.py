"""
Fixtures for tests against a real PostgreSQL.

Set TEST_DATABASE_URL (or DATABASE_URL) to a disposable database. The schema
is applied once per session and every table is truncated before each test.
Without a reachable database these tests are skipped.
"""

import os
from pathlib import Path

import psycopg2
import pytest

from clients.postgres_client import PostgresClient
from core.event_bus import EventBus
from utils.timezone import now_utc

SCHEMA = Path(__file__).parents[2] / "db" / "schema.sql"

TABLES = (
    "payments, invoice_items, invoices, invoice_sequences, transactions, "
    "customer_segment_members, customer_segments, customer_interactions, customers, "
    "audit_log, user_activities, users"
)


def _database_url() -> str | None:
    return os.environ.get("TEST_DATABASE_URL") or os.environ.get("DATABASE_URL")


@pytest.fixture(scope="session")
def pg():
    """PostgresClient on the test database, schema applied."""
    url = _database_url()
    if not url:
        pytest.skip("TEST_DATABASE_URL not set")
    try:
        psycopg2.connect(url, connect_timeout=3).close()
    except psycopg2.OperationalError as e:
        pytest.skip(f"PostgreSQL not reachable: {e}")

    client = PostgresClient(url)
    client.execute(SCHEMA.read_text())
    yield client
    client.close()


@pytest.fixture
def db(pg, test_user_id, test_user_b_id):
    """Empty tables with the two test users present."""
    pg.execute(f"TRUNCATE {TABLES} CASCADE")
    now = now_utc()
    for user_id, name in ((test_user_id, "integration_a"), (test_user_b_id, "integration_b")):
        pg.execute(
            """INSERT INTO users (id, username, email, password_hash, role, status, created_at, updated_at)
               VALUES (%s, %s, %s, 'x', 'admin', 'active', %s, %s)""",
            (user_id, name, f"{name}@example.com", now, now),
        )
    return pg


@pytest.fixture
def event_bus():
    return EventBus()
