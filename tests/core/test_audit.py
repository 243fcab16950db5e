"""Tests for the material audit trail."""

from unittest.mock import Mock
from uuid import uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.audit import AuditAction, AuditLogger, compute_changes


class TestAuditAction:
    def test_values(self):
        assert [a.value for a in AuditAction] == ["create", "update", "approval", "delete"]


class TestComputeChanges:
    """Tests for compute_changes utility function."""

    def test_detects_changed_fields(self):
        changes = compute_changes(
            {"course_title": "Calculus", "level": "100"},
            {"course_title": "Calculus I", "level": "100"},
        )
        assert changes == {"course_title": {"old": "Calculus", "new": "Calculus I"}}

    def test_detects_added_and_removed_fields(self):
        changes = compute_changes({"a": 1}, {"b": 2})
        assert changes == {"a": {"old": 1, "new": None}, "b": {"old": None, "new": 2}}

    def test_excludes_updated_at_by_default(self):
        assert compute_changes({"updated_at": "t1"}, {"updated_at": "t2"}) == {}

    def test_explicit_empty_exclusions(self):
        """An empty exclusion set reports updated_at too."""
        changes = compute_changes({"updated_at": "t1"}, {"updated_at": "t2"}, exclude_fields=set())
        assert "updated_at" in changes

    def test_empty_when_no_changes(self):
        assert compute_changes({"x": 1}, {"x": 1}) == {}


class TestAuditLogger:
    def test_log_change_inserts_row(self):
        postgres = Mock(spec=PostgresClient)
        entity_id = uuid4()
        account_id = uuid4()

        AuditLogger(postgres).log_change(
            entity_type="material",
            entity_id=entity_id,
            action=AuditAction.APPROVAL,
            changes={"approved": {"old": False, "new": True}},
            account_id=account_id,
        )

        query, params = postgres.execute.call_args.args
        assert "INSERT INTO audit_log" in query
        assert params[1] == account_id
        assert params[2] == "material"
        assert params[3] == entity_id
        assert params[4] == "approval"
        assert isinstance(params[5], Json)
        assert params[5].adapted == {"approved": {"old": False, "new": True}}

    def test_defaults_to_current_identity(self, as_user):
        postgres = Mock(spec=PostgresClient)

        AuditLogger(postgres).log_change("material", uuid4(), AuditAction.DELETE, {"deleted": {}})

        _, params = postgres.execute.call_args.args
        assert params[1] == as_user.id

    def test_no_identity_records_null_actor(self):
        postgres = Mock(spec=PostgresClient)

        AuditLogger(postgres).log_change("material", uuid4(), AuditAction.CREATE, {"created": {}})

        _, params = postgres.execute.call_args.args
        assert params[1] is None
