"""Integration tests for multi-tenancy isolation.

These tests verify that a tenant handle only ever sees its own namespace,
whatever identifiers the caller passes.
"""

import datetime as dt
from decimal import Decimal

import pytest

from lawdesk.core.errors import NotFoundError
from lawdesk.core.tenancy.router import TenantConnectionRouter
from lawdesk.modules.users.models import User


pytestmark = pytest.mark.integration


class TestTenantIsolation:
    """Tests for multi-tenant data isolation."""

    @pytest.fixture
    async def two_tenants(self, make_organization):
        first = await make_organization(organization_name="Acme Law")
        second = await make_organization(organization_name="Beta Law")
        return first, second

    async def test_users_are_separate(self, two_tenants, tenant_router: TenantConnectionRouter):
        (user_a, tenant_a, _), (user_b, tenant_b, _) = two_tenants

        users_a = await tenant_router.resolve(tenant_a.id).read(User)
        users_b = await tenant_router.resolve(tenant_b.id).read(User)

        assert [u.id for u in users_a] == [user_a.id]
        assert [u.id for u in users_b] == [user_b.id]

    async def test_cannot_reach_other_tenant_rows(
        self, two_tenants, tenant_router: TenantConnectionRouter
    ):
        """Row ids from another tenant should be unknown, not merely hidden."""
        (_, tenant_a, _), (user_b, tenant_b, _) = two_tenants
        handle_a = tenant_router.resolve(tenant_a.id)
        entry_b = await tenant_router.resolve(tenant_b.id).insert(
            "cash_flow",
            {
                "type": "expense",
                "amount": Decimal("80.00"),
                "category_id": "rent",
                "description": "Office",
                "date": dt.date(2026, 10, 2),
            },
        )

        assert await handle_a.get(User, user_b.id) is None
        assert await handle_a.read("cash_flow") == []
        with pytest.raises(NotFoundError):
            await handle_a.update("cash_flow", entry_b.id, {"status": "cancelled"})
        with pytest.raises(NotFoundError):
            await handle_a.delete("cash_flow", entry_b.id)

        (still_there,) = await tenant_router.resolve(tenant_b.id).read("cash_flow")
        assert still_there.status == "confirmed"

    async def test_audit_rows_stay_in_namespace(
        self, two_tenants, tenant_router: TenantConnectionRouter
    ):
        (user_a, tenant_a, _), (user_b, tenant_b, _) = two_tenants

        rows_a = await tenant_router.resolve(tenant_a.id).read("audit_log")

        assert {row.record_id for row in rows_a} == {user_a.id}
        assert user_b.id not in {row.record_id for row in rows_a}

    async def test_handles_share_one_pool(self, two_tenants, tenant_router: TenantConnectionRouter):
        (_, tenant_a, _), (_, tenant_b, _) = two_tenants

        handle_a = tenant_router.resolve(tenant_a.id)

        assert tenant_router.resolve(tenant_a.id) is handle_a
        assert handle_a.namespace != tenant_router.resolve(tenant_b.id).namespace
