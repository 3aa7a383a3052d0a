"""Tenant registry: the system-wide catalog of tenants.

Every operation accepts an optional session so it can take part in a
larger transaction (registration writes the registry row, the namespace
and the first user atomically). Without one, a short transaction of its
own is used.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID, uuid4

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from lawdesk.core.constants import DEFAULT_PLAN_TYPE
from lawdesk.core.database.store import DataStore
from lawdesk.core.errors import DuplicateAdminEmailError, NotFoundError
from lawdesk.core.tenancy.models import Tenant, TenantMember, TenantMigration


logger = structlog.get_logger()


def normalize_email(email: str) -> str:
    return email.strip().lower()


class TenantRegistry:
    """Catalog of tenants, their member directory and layout versions."""

    def __init__(self, store: DataStore) -> None:
        self.store = store

    @asynccontextmanager
    async def _session(self, session: AsyncSession | None) -> AsyncIterator[AsyncSession]:
        if session is not None:
            yield session
        else:
            async with self.store.session() as own:
                yield own

    async def register(
        self,
        name: str,
        admin_email: str,
        license_number: str | None = None,
        plan_type: str = DEFAULT_PLAN_TYPE,
        tenant_id: UUID | None = None,
        session: AsyncSession | None = None,
    ) -> Tenant:
        """Create a tenant record.

        Uniqueness of the administrator email is decided by the database
        constraint, so concurrent registrations with the same email cannot
        both succeed. Does not provision storage.

        Args:
            name: Organization name
            admin_email: Founding administrator email (stored lower-cased)
            license_number: Professional licence identifier
            plan_type: Subscription plan
            tenant_id: Pre-generated id, a fresh one is generated otherwise
            session: Optional enclosing transaction

        Returns:
            The created tenant

        Raises:
            DuplicateAdminEmailError: If the email already administers a tenant
        """
        email = normalize_email(admin_email)
        stmt = (
            insert(Tenant)
            .values(
                id=tenant_id or uuid4(),
                name=name.strip(),
                admin_email=email,
                license_number=license_number,
                plan_type=plan_type,
            )
            .on_conflict_do_nothing(index_elements=["admin_email"])
            .returning(Tenant)
        )

        async with self._session(session) as s:
            result = await s.execute(stmt)
            tenant = result.scalar_one_or_none()

        if tenant is None:
            logger.info("tenant_registration_rejected", reason="duplicate_admin_email")
            raise DuplicateAdminEmailError(details={"email": email})

        logger.info("tenant_registered", tenant_id=str(tenant.id))
        return tenant

    async def find_by_admin_email(
        self, email: str, session: AsyncSession | None = None
    ) -> Tenant | None:
        """Get a tenant by its administrator email."""
        stmt = select(Tenant).where(Tenant.admin_email == normalize_email(email))
        async with self._session(session) as s:
            result = await s.execute(stmt)
            return result.scalar_one_or_none()

    async def find_by_id(
        self, tenant_id: UUID, session: AsyncSession | None = None
    ) -> Tenant | None:
        """Get a tenant by ID."""
        async with self._session(session) as s:
            return await s.get(Tenant, tenant_id)

    async def lock_for_update(self, tenant_id: UUID, session: AsyncSession) -> Tenant | None:
        """Get a tenant and lock its row until ``session`` ends.

        Serializes membership changes of one tenant, so plan limits hold
        under concurrent user creation.
        """
        stmt = select(Tenant).where(Tenant.id == tenant_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active(self, session: AsyncSession | None = None) -> list[Tenant]:
        """List all active tenants, oldest first."""
        stmt = select(Tenant).where(Tenant.is_active.is_(True)).order_by(Tenant.created_at)
        async with self._session(session) as s:
            result = await s.execute(stmt)
            return list(result.scalars().all())

    async def set_active(
        self, tenant_id: UUID, active: bool, session: AsyncSession | None = None
    ) -> Tenant:
        """Activate or deactivate a tenant.

        Raises:
            NotFoundError: If the tenant does not exist
        """
        stmt = (
            update(Tenant)
            .where(Tenant.id == tenant_id)
            .values(is_active=active, updated_at=func.now())
            .returning(Tenant)
        )
        async with self._session(session) as s:
            result = await s.execute(stmt)
            tenant = result.scalar_one_or_none()

        if tenant is None:
            raise NotFoundError("Tenant not found", resource="tenant", resource_id=str(tenant_id))

        logger.info("tenant_activation_changed", tenant_id=str(tenant_id), is_active=active)
        return tenant

    async def add_member(
        self,
        tenant_id: UUID,
        user_id: UUID,
        email: str,
        session: AsyncSession | None = None,
    ) -> None:
        """Record that ``email`` belongs to a user of ``tenant_id``."""
        stmt = (
            insert(TenantMember)
            .values(tenant_id=tenant_id, user_id=user_id, email=normalize_email(email))
            .on_conflict_do_nothing(
                index_elements=["tenant_id", "email"]
            )
        )
        async with self._session(session) as s:
            await s.execute(stmt)

    async def find_tenant_ids_for_email(
        self, email: str, session: AsyncSession | None = None
    ) -> list[UUID]:
        """List the tenants that hold a user with this email."""
        stmt = (
            select(TenantMember.tenant_id)
            .where(TenantMember.email == normalize_email(email))
            .order_by(TenantMember.created_at)
        )
        async with self._session(session) as s:
            result = await s.execute(stmt)
            return list(result.scalars().all())

    async def count_members(
        self, tenant_id: UUID, session: AsyncSession | None = None
    ) -> int:
        """Count the users registered under a tenant."""
        stmt = (
            select(func.count())
            .select_from(TenantMember)
            .where(TenantMember.tenant_id == tenant_id)
        )
        async with self._session(session) as s:
            result = await s.execute(stmt)
            return result.scalar_one()

    async def record_migration(
        self,
        tenant_id: UUID,
        migration_name: str,
        session: AsyncSession | None = None,
    ) -> None:
        """Record a namespace layout version as applied. Idempotent."""
        stmt = (
            insert(TenantMigration)
            .values(tenant_id=tenant_id, migration_name=migration_name)
            .on_conflict_do_nothing(
                index_elements=["tenant_id", "migration_name"]
            )
        )
        async with self._session(session) as s:
            await s.execute(stmt)

    async def has_migration(
        self,
        tenant_id: UUID,
        migration_name: str,
        session: AsyncSession | None = None,
    ) -> bool:
        """Check whether a layout version was recorded for a tenant."""
        stmt = select(TenantMigration.id).where(
            TenantMigration.tenant_id == tenant_id,
            TenantMigration.migration_name == migration_name,
        )
        async with self._session(session) as s:
            result = await s.execute(stmt)
            return result.first() is not None
