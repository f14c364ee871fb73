"""Tests for AuditLogger and compute_changes."""

from uuid import uuid4

import pytest
from psycopg2.extras import Json

from core.audit import AuditAction, AuditLogger, compute_changes


class TestComputeChanges:

    def test_reports_only_changed_fields(self):
        changes = compute_changes(
            {"name": "Old", "email": "same@x.co", "updated_at": "t1"},
            {"name": "New", "email": "same@x.co", "updated_at": "t2"},
        )
        assert changes == {"name": {"old": "Old", "new": "New"}}

    def test_added_and_removed_keys(self):
        changes = compute_changes({"a": 1}, {"b": 2})
        assert changes == {"a": {"old": 1, "new": None}, "b": {"old": None, "new": 2}}

    def test_no_changes_is_empty(self):
        assert compute_changes({"a": 1}, {"a": 1}) == {}


class TestLogChange:

    def test_autocommits_without_transaction(self, fake_db, as_test_user):
        audit = AuditLogger(fake_db)
        entity_id = uuid4()

        audit.log_change("customer", entity_id, AuditAction.CREATE, {"created": {"name": "Acme"}})

        [call] = fake_db.statements("INSERT INTO audit_log")
        assert call.in_transaction is False
        _, user_id, entity_type, logged_id, action, changes, _ = call.params
        assert user_id == as_test_user
        assert (entity_type, logged_id, action) == ("customer", entity_id, "create")
        assert isinstance(changes, Json)

    def test_writes_through_given_transaction(self, fake_db, as_test_user):
        audit = AuditLogger(fake_db)

        with fake_db.transaction() as tx:
            audit.log_change("invoice", uuid4(), AuditAction.UPDATE, {}, tx=tx)

        [call] = fake_db.statements("INSERT INTO audit_log")
        assert call.in_transaction is True

    def test_explicit_user_overrides_context(self, fake_db, as_test_user, test_user_b_id):
        AuditLogger(fake_db).log_change("payment", uuid4(), AuditAction.CREATE, {}, user_id=test_user_b_id)
        assert fake_db.statements("INSERT INTO audit_log")[0].params[1] == test_user_b_id

    def test_requires_an_actor(self, fake_db):
        with pytest.raises(RuntimeError):
            AuditLogger(fake_db).log_change("payment", uuid4(), AuditAction.CREATE, {})
