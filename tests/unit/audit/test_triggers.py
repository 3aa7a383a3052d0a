"""Unit tests for the audit trigger DDL."""

from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql

from lawdesk.core.audit.triggers import audit_ddl
from lawdesk.core.database.namespace import InvalidNamespaceError, namespace_for


@pytest.fixture
def namespace() -> str:
    return namespace_for(uuid4())


def _render(namespace: str, tables: list[str]) -> list[str]:
    return [str(statement) for statement in audit_ddl(namespace, tables, postgresql.dialect())]


class TestAuditDDL:
    """Tests for audit_ddl."""

    def test_functions_live_in_namespace(self, namespace: str):
        """Trigger functions should be created inside the tenant namespace."""
        statements = _render(namespace, ["cash_flow"])

        assert f"CREATE OR REPLACE FUNCTION {namespace}.audit_trigger_function()" in statements[0]
        assert f"INSERT INTO {namespace}.audit_log" in statements[0]
        assert f"CREATE OR REPLACE FUNCTION {namespace}.audit_log_guard_function()" in statements[1]

    def test_one_trigger_per_table(self, namespace: str):
        """Every audited table should get a row-level trigger."""
        statements = _render(namespace, ["cash_flow", "users"])
        creates = [s for s in statements if "AFTER INSERT OR UPDATE OR DELETE" in s]

        assert len(creates) == 2
        assert any(f"ON {namespace}.cash_flow FOR EACH ROW" in s for s in creates)
        assert any(f"ON {namespace}.users FOR EACH ROW" in s for s in creates)

    def test_idempotent(self, namespace: str):
        """Every trigger should be dropped before it is (re)created."""
        statements = _render(namespace, ["cash_flow"])
        drops = [s for s in statements if s.startswith("DROP TRIGGER IF EXISTS")]
        creates = [s for s in statements if s.startswith("CREATE TRIGGER")]

        assert len(drops) == len(creates) == 3

    def test_audit_log_guarded(self, namespace: str):
        """The audit log should reject updates, deletes and truncation."""
        statements = _render(namespace, [])

        assert any(
            f"BEFORE UPDATE OR DELETE ON {namespace}.audit_log" in s for s in statements
        )
        assert any(f"BEFORE TRUNCATE ON {namespace}.audit_log" in s for s in statements)
        assert "append-only" in statements[1]

    def test_secrets_redacted(self, namespace: str):
        """Credential hashes should be stripped from snapshots."""
        function = _render(namespace, ["users"])[0]

        assert "- 'password_hash'::text" in function

    def test_reads_transaction_settings(self, namespace: str):
        """The trigger should read the acting user from transaction-local settings."""
        function = _render(namespace, ["users"])[0]

        assert "current_setting('lawdesk.user_id', true)" in function
        assert "current_setting('lawdesk.request_id', true)" in function

    def test_rejects_invalid_namespace(self):
        """DDL should never be built for a name outside the allow-list."""
        with pytest.raises(InvalidNamespaceError):
            audit_ddl("public", ["users"], postgresql.dialect())

    def test_namespaces_do_not_mix(self, namespace: str):
        """Statements for one namespace should never mention another."""
        other = namespace_for(uuid4())

        assert all(other not in s for s in _render(namespace, ["users", "cash_flow"]))
