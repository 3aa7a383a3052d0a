"""Schema provisioner: creates and initializes tenant namespaces.

Provisioning runs in a single transaction. PostgreSQL DDL is transactional,
so a failure at any step leaves no partial namespace behind.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

import structlog
from sqlalchemy import Connection, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.schema import CreateSchema

from lawdesk.core.audit.triggers import audit_ddl
from lawdesk.core.constants import NAMESPACE_LAYOUT_VERSION
from lawdesk.core.database.base import TenantBase
from lawdesk.core.database.namespace import InvalidNamespaceError, namespace_for
from lawdesk.core.database.store import DataStore
from lawdesk.core.errors import ProvisioningError
from lawdesk.core.tenancy.registry import TenantRegistry
from lawdesk.modules import import_models


logger = structlog.get_logger()


def audited_tables() -> list[str]:
    """Names of the tenant tables whose models carry the audit marker."""
    return sorted(
        mapper.class_.__tablename__
        for mapper in TenantBase.registry.mappers
        if getattr(mapper.class_, "__audit__", False)
    )


def _create_tables(connection: Connection, namespace: str) -> None:
    scoped = connection.execution_options(schema_translate_map={None: namespace})
    TenantBase.metadata.create_all(scoped, checkfirst=True)


class SchemaProvisioner:
    """Creates a tenant's namespace with its full table set and audit triggers.

    Usage:
        provisioner = SchemaProvisioner(store, registry)
        await provisioner.provision(tenant.id)
    """

    def __init__(self, store: DataStore, registry: TenantRegistry) -> None:
        self.store = store
        self.registry = registry
        import_models()

    @asynccontextmanager
    async def _session(self, session: AsyncSession | None) -> AsyncIterator[AsyncSession]:
        if session is not None:
            yield session
        else:
            async with self.store.session() as own:
                yield own

    async def provision(self, tenant_id: UUID, session: AsyncSession | None = None) -> None:
        """Create the namespace for a tenant. Idempotent.

        Concurrent calls for the same tenant are serialized by a
        transaction-scoped advisory lock; re-running against a complete
        namespace changes nothing.

        Args:
            tenant_id: The tenant to provision
            session: Optional enclosing transaction; when given, its outcome
                decides whether the namespace survives

        Raises:
            ProvisioningError: If any step fails
        """
        log = logger.bind(tenant_id=str(tenant_id))

        try:
            namespace = namespace_for(tenant_id)
            async with self._session(session) as s:
                await self._apply(s, tenant_id, namespace)
        except (SQLAlchemyError, InvalidNamespaceError) as e:
            log.error("tenant_provisioning_failed", error_type=type(e).__name__)
            raise ProvisioningError(details={"tenant_id": str(tenant_id)}) from e

        log.info("tenant_provisioned", namespace=namespace, layout=NAMESPACE_LAYOUT_VERSION)

    async def _apply(self, session: AsyncSession, tenant_id: UUID, namespace: str) -> None:
        conn = await session.connection()

        await conn.execute(
            text("SELECT pg_advisory_xact_lock(hashtext(:namespace))"),
            {"namespace": namespace},
        )
        await conn.execute(CreateSchema(namespace, if_not_exists=True))
        await conn.run_sync(_create_tables, namespace)

        for statement in audit_ddl(namespace, audited_tables(), conn.dialect):
            await conn.execute(statement)

        await self.registry.record_migration(
            tenant_id, NAMESPACE_LAYOUT_VERSION, session=session
        )

    async def is_provisioned(self, tenant_id: UUID) -> bool:
        """Check that the namespace exists and its layout version is recorded."""
        namespace = namespace_for(tenant_id)
        async with self.store.session() as s:
            result = await s.execute(
                text(
                    "SELECT EXISTS ("
                    "SELECT 1 FROM information_schema.schemata WHERE schema_name = :namespace"
                    ")"
                ),
                {"namespace": namespace},
            )
            if not result.scalar_one():
                return False
            return await self.registry.has_migration(
                tenant_id, NAMESPACE_LAYOUT_VERSION, session=s
            )
