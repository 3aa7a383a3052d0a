"""Integration tests for the database audit trigger."""

import datetime as dt
from decimal import Decimal

import pytest
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError

from lawdesk.core.audit.context import set_audit_context
from lawdesk.core.errors import ForbiddenError
from lawdesk.core.tenancy.router import TenantConnectionRouter


pytestmark = pytest.mark.integration


def _transaction() -> dict:
    return {
        "type": "income",
        "amount": Decimal("1500.00"),
        "category_id": "fees",
        "description": "Retainer",
        "date": dt.date(2026, 10, 1),
    }


class TestAuditTrail:
    """Every mutation of an audited table leaves exactly one audit row."""

    async def test_create_update_delete(self, make_organization, tenant_router: TenantConnectionRouter):
        """Each mutation should be attributed to the acting user in the context."""
        user, tenant, _ = await make_organization()
        handle = tenant_router.resolve(tenant.id)
        set_audit_context(user_id=user.id, ip_address="203.0.113.7", request_id="req-1")

        entry = await handle.insert("cash_flow", _transaction())
        await handle.update("cash_flow", entry.id, {"status": "cancelled"})
        await handle.delete("cash_flow", entry.id)

        rows = await handle.read(
            "audit_log",
            filters={"table_name": "cash_flow", "record_id": entry.id},
            order_by="timestamp",
        )
        assert [row.operation for row in rows] == ["CREATE", "UPDATE", "DELETE"]
        assert {row.user_id for row in rows} == {user.id}
        assert {row.ip_address for row in rows} == {"203.0.113.7"}
        assert {row.request_id for row in rows} == {"req-1"}

        created, updated, deleted = rows
        assert created.old_data is None
        assert created.new_data["description"] == "Retainer"
        assert updated.old_data["status"] == "confirmed"
        assert updated.new_data["status"] == "cancelled"
        assert deleted.new_data is None
        assert deleted.old_data["id"] == str(entry.id)

    async def test_mutation_without_context(self, make_organization, tenant_router: TenantConnectionRouter):
        """System mutations should be recorded with no acting user."""
        _, tenant, _ = await make_organization()
        handle = tenant_router.resolve(tenant.id)

        entry = await handle.insert("cash_flow", _transaction())

        (row,) = await handle.read("audit_log", filters={"record_id": entry.id})
        assert row.user_id is None
        assert row.ip_address is None

    async def test_secret_hash_not_recorded(
        self, make_organization, tenant_router: TenantConnectionRouter
    ):
        """Snapshots of user rows should never contain the password hash."""
        user, tenant, _ = await make_organization()
        handle = tenant_router.resolve(tenant.id)

        (row,) = await handle.read(
            "audit_log", filters={"table_name": "users", "record_id": user.id}
        )
        assert row.operation == "CREATE"
        assert row.new_data["email"] == user.email
        assert "password_hash" not in row.new_data

    async def test_audit_log_is_append_only(
        self, make_organization, tenant_router: TenantConnectionRouter
    ):
        """Neither the handle nor raw SQL may rewrite audit history."""
        user, tenant, _ = await make_organization()
        handle = tenant_router.resolve(tenant.id)
        (row,) = await handle.read("audit_log", filters={"record_id": user.id})

        with pytest.raises(ForbiddenError):
            await handle.update("audit_log", row.id, {"operation": "DELETE"})

        with pytest.raises(DBAPIError):
            async with handle.session() as session:
                await session.execute(
                    text(f'UPDATE "{handle.namespace}".audit_log SET user_id = NULL')
                )

        with pytest.raises(DBAPIError):
            async with handle.session() as session:
                await session.execute(text(f'DELETE FROM "{handle.namespace}".audit_log'))

        assert len(await handle.read("audit_log")) == 1
