"""Integration tests for tenant registration and namespace provisioning."""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import text

from lawdesk.core.auth.service import AuthService
from lawdesk.core.database.namespace import namespace_for
from lawdesk.core.database.store import DataStore
from lawdesk.core.errors import DuplicateAdminEmailError, ProvisioningError
from lawdesk.core.tenancy.provisioner import SchemaProvisioner, audited_tables
from lawdesk.core.tenancy.registry import TenantRegistry
from lawdesk.core.tenancy.router import TenantConnectionRouter
from tests.factories.tenant import RegisterRequestFactory


pytestmark = pytest.mark.integration


async def _tables(store: DataStore, namespace: str) -> set[str]:
    async with store.session() as session:
        result = await session.execute(
            text("SELECT table_name FROM information_schema.tables WHERE table_schema = :ns"),
            {"ns": namespace},
        )
        return set(result.scalars().all())


async def _tenant_schema_count(store: DataStore) -> int:
    async with store.session() as session:
        result = await session.execute(
            text(
                "SELECT count(*) FROM information_schema.schemata "
                "WHERE schema_name LIKE 'tenant\\_%'"
            )
        )
        return result.scalar_one()


class TestRegistry:
    """Tests for the tenant registry."""

    async def test_register_normalizes_email(self, registry: TenantRegistry):
        tenant = await registry.register("Acme Law", "  Admin@Acme.TEST ")

        assert tenant.admin_email == "admin@acme.test"
        assert tenant.is_active is True
        assert tenant.max_users == 5

    async def test_duplicate_admin_email(self, registry: TenantRegistry):
        """A second tenant with the same administrator email should be refused."""
        await registry.register("Acme Law", "a@acme.test")

        with pytest.raises(DuplicateAdminEmailError):
            await registry.register("Other Firm", "A@ACME.test")

    async def test_set_active(self, registry: TenantRegistry):
        tenant = await registry.register("Acme Law", "a@acme.test")

        await registry.set_active(tenant.id, False)

        assert (await registry.find_by_id(tenant.id)).is_active is False
        assert tenant.id not in [t.id for t in await registry.list_active()]


class TestProvisioner:
    """Tests for namespace provisioning."""

    async def test_provision_creates_namespace(
        self, store: DataStore, registry: TenantRegistry, provisioner: SchemaProvisioner
    ):
        """Provisioning should create every tenant table and record the layout version."""
        tenant = await registry.register("Acme Law", "a@acme.test")

        await provisioner.provision(tenant.id)

        tables = await _tables(store, namespace_for(tenant.id))
        assert {"users", "refresh_tokens", "audit_log", "cash_flow"} <= tables
        assert set(audited_tables()) <= tables
        assert await provisioner.is_provisioned(tenant.id) is True

    async def test_provision_is_idempotent(
        self, store: DataStore, registry: TenantRegistry, provisioner: SchemaProvisioner
    ):
        tenant = await registry.register("Acme Law", "a@acme.test")

        await provisioner.provision(tenant.id)
        before = await _tables(store, namespace_for(tenant.id))
        await provisioner.provision(tenant.id)

        assert await _tables(store, namespace_for(tenant.id)) == before
        assert await provisioner.is_provisioned(tenant.id) is True

    async def test_not_provisioned(self, provisioner: SchemaProvisioner):
        assert await provisioner.is_provisioned(uuid4()) is False


class TestRegistration:
    """Registration writes the tenant, namespace and first user atomically."""

    async def test_register_organization(self, auth_service: AuthService, provisioner: SchemaProvisioner):
        user, tenant, tokens = await auth_service.register(
            name="Ana",
            email="a@acme.test",
            secret="Secret123!",
            organization_name="Acme Law",
            license_number="OAB-1",
        )

        assert user.account_tier == "managerial"
        assert tenant.admin_email == "a@acme.test"
        assert tokens.refresh_token.startswith(tenant.id.hex + ".")
        assert await provisioner.is_provisioned(tenant.id) is True
        assert await auth_service.registry.count_members(tenant.id) == 1
        assert await auth_service.registry.find_tenant_ids_for_email("A@acme.test") == [tenant.id]

    async def test_duplicate_registration(self, store: DataStore, make_organization):
        """A refused registration should create no namespace."""
        await make_organization(email="a@acme.test")

        with pytest.raises(DuplicateAdminEmailError):
            await make_organization(email="a@acme.test")

        assert await _tenant_schema_count(store) == 1

    async def test_failed_provisioning_leaves_nothing(
        self,
        store: DataStore,
        registry: TenantRegistry,
        provisioner: SchemaProvisioner,
        tenant_router: TenantConnectionRouter,
        auth_service: AuthService,
    ):
        """When provisioning fails, no tenant row may remain."""
        data = RegisterRequestFactory.build()

        with patch.object(
            provisioner, "provision", AsyncMock(side_effect=ProvisioningError())
        ), pytest.raises(ProvisioningError):
            await auth_service.register(
                name=data.name,
                email=data.email,
                secret=data.secret,
                organization_name=data.organization_name,
            )

        assert await registry.find_by_admin_email(data.email) is None
        assert await _tenant_schema_count(store) == 0
        assert len(tenant_router) == 0

    async def test_failure_after_provisioning_rolls_back_namespace(
        self, store: DataStore, registry: TenantRegistry, auth_service: AuthService
    ):
        """A failure after the namespace was created should drop it with the tenant."""
        data = RegisterRequestFactory.build()

        with patch(
            "lawdesk.core.auth.service.UserRepository.create",
            AsyncMock(side_effect=RuntimeError("disk full")),
        ), pytest.raises(RuntimeError):
            await auth_service.register(
                name=data.name,
                email=data.email,
                secret=data.secret,
                organization_name=data.organization_name,
            )

        assert await registry.find_by_admin_email(data.email) is None
        assert await _tenant_schema_count(store) == 0
