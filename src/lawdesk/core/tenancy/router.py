"""Tenant-scoped data access.

A ``ScopedHandle`` is the only way request handlers reach tenant data. It is
bound to one namespace through SQLAlchemy's ``schema_translate_map``: every
tenant table is declared without a schema and is qualified to the handle's
namespace when a statement executes. Callers never supply a namespace, so
they cannot address another tenant's tables.
"""

from collections.abc import AsyncIterator, Mapping, Sequence
from contextlib import asynccontextmanager
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lawdesk.core.audit.context import apply_audit_context
from lawdesk.core.audit.models import AuditLog
from lawdesk.core.constants import MAX_PAGE_SIZE
from lawdesk.core.database.base import TenantBase
from lawdesk.core.database.namespace import InvalidNamespaceError, namespace_for
from lawdesk.core.database.store import DataStore
from lawdesk.core.errors import ForbiddenError, NotFoundError, ValidationError
from lawdesk.modules import import_models


logger = structlog.get_logger()

ModelRef = type[TenantBase] | str

# Columns callers may never write directly
_PROTECTED_COLUMNS = frozenset({"id", "created_at", "updated_at"})

# Owned by the auth core, which keeps them in step with the tenant directory
_MANAGED_TABLES = frozenset({"users", "refresh_tokens"})


def tenant_tables() -> dict[str, type[TenantBase]]:
    """Allow-list of tenant tables, by table name."""
    return {
        mapper.class_.__tablename__: mapper.class_
        for mapper in TenantBase.registry.mappers
    }


class ScopedHandle:
    """Data access confined to one tenant namespace.

    All operations accept an optional ``session`` so several of them can be
    composed into one transaction:

        async with handle.session() as session:
            entry = await handle.insert("cash_flow", payload, session=session)
            await handle.update("cash_flow", entry.id, changes, session=session)
    """

    def __init__(
        self,
        tenant_id: UUID,
        namespace: str,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self.tenant_id = tenant_id
        self.namespace = namespace
        self._session_factory = session_factory

    def __repr__(self) -> str:
        return f"<ScopedHandle(tenant_id={self.tenant_id})>"

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a transaction in this namespace with the audit context applied.

        Commits when the block exits cleanly, rolls back otherwise.
        """
        async with self._session_factory() as session:
            try:
                await apply_audit_context(session)
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @asynccontextmanager
    async def _use(self, session: AsyncSession | None) -> AsyncIterator[AsyncSession]:
        if session is not None:
            yield session
        else:
            async with self.session() as own:
                yield own

    def resolve_model(self, model: ModelRef) -> type[TenantBase]:
        """Map a model class or table name to an allow-listed tenant model.

        Raises:
            ValidationError: If the reference is not a tenant table
        """
        tables = tenant_tables()
        if isinstance(model, str):
            resolved = tables.get(model)
        elif isinstance(model, type) and issubclass(model, TenantBase):
            resolved = tables.get(model.__tablename__)
        else:
            resolved = None

        if resolved is None:
            raise ValidationError(
                "Unknown table",
                errors=[{"field": "table", "message": f"Unknown table: {model!r}"}],
            )
        return resolved

    def _writable(self, model: ModelRef) -> type[TenantBase]:
        resolved = self.resolve_model(model)
        if resolved is AuditLog:
            raise ForbiddenError(
                "The audit log is read-only",
                error_code="AUDIT_LOG_READ_ONLY",
            )
        if resolved.__tablename__ in _MANAGED_TABLES:
            raise ForbiddenError(
                f"{resolved.__tablename__} can only be changed through the user and auth services",
                error_code="MANAGED_TABLE",
            )
        return resolved

    @staticmethod
    def _column(model: type[TenantBase], name: str) -> Any:
        column = model.__table__.columns.get(name)
        if column is None:
            raise ValidationError(
                "Unknown column",
                errors=[{"field": name, "message": f"Unknown column for {model.__tablename__}"}],
            )
        return getattr(model, column.key)

    def _check_payload(self, model: type[TenantBase], payload: Mapping[str, Any]) -> None:
        errors = []
        for name in payload:
            if name in _PROTECTED_COLUMNS:
                errors.append({"field": name, "message": "Column cannot be written"})
            elif name not in model.__table__.columns:
                errors.append(
                    {"field": name, "message": f"Unknown column for {model.__tablename__}"}
                )
        if errors:
            raise ValidationError("Invalid payload", errors=errors)

    def _build_select(
        self,
        model: type[TenantBase],
        filters: Mapping[str, Any] | None,
        order_by: str | Sequence[str] | None,
        limit: int | None,
    ) -> Select[Any]:
        stmt = select(model)

        for name, value in (filters or {}).items():
            column = self._column(model, name)
            if value is None:
                stmt = stmt.where(column.is_(None))
            elif isinstance(value, list | tuple | set | frozenset):
                stmt = stmt.where(column.in_(list(value)))
            else:
                stmt = stmt.where(column == value)

        if isinstance(order_by, str):
            order_by = [order_by]
        for key in order_by or []:
            descending = key.startswith("-")
            column = self._column(model, key.lstrip("-"))
            stmt = stmt.order_by(column.desc() if descending else column.asc())

        if limit is not None:
            if limit < 1:
                raise ValidationError(
                    "Invalid limit",
                    errors=[{"field": "limit", "message": "Must be a positive integer"}],
                )
            stmt = stmt.limit(min(limit, MAX_PAGE_SIZE))

        return stmt

    async def read(
        self,
        model: ModelRef,
        filters: Mapping[str, Any] | None = None,
        order_by: str | Sequence[str] | None = None,
        limit: int | None = None,
        session: AsyncSession | None = None,
    ) -> list[Any]:
        """Select rows of a tenant table.

        Args:
            model: Tenant model class or table name
            filters: Column equality filters; ``None`` matches NULL and a
                sequence matches any of its values
            order_by: Column name(s), prefix with ``-`` for descending
            limit: Maximum number of rows
            session: Optional enclosing transaction

        Returns:
            Matching model instances

        Raises:
            ValidationError: On unknown tables or columns
        """
        resolved = self.resolve_model(model)
        stmt = self._build_select(resolved, filters, order_by, limit)
        async with self._use(session) as s:
            result = await s.execute(stmt)
            return list(result.scalars().all())

    async def get(
        self,
        model: ModelRef,
        record_id: UUID,
        session: AsyncSession | None = None,
    ) -> Any | None:
        """Get one row by primary key, or None."""
        resolved = self.resolve_model(model)
        async with self._use(session) as s:
            return await s.get(resolved, record_id)

    async def insert(
        self,
        model: ModelRef,
        payload: Mapping[str, Any],
        session: AsyncSession | None = None,
    ) -> Any:
        """Insert a row and return it with server defaults loaded.

        Raises:
            ValidationError: On unknown tables or columns
            ForbiddenError: When targeting the audit log or an auth-owned table
        """
        resolved = self._writable(model)
        self._check_payload(resolved, payload)

        async with self._use(session) as s:
            instance = resolved(**payload)
            s.add(instance)
            await s.flush()
            await s.refresh(instance)
            return instance

    async def update(
        self,
        model: ModelRef,
        record_id: UUID,
        payload: Mapping[str, Any],
        session: AsyncSession | None = None,
    ) -> Any:
        """Apply ``payload`` to one row and return the updated row.

        Raises:
            NotFoundError: If the row does not exist in this namespace
            ValidationError: On unknown tables or columns
            ForbiddenError: When targeting the audit log or an auth-owned table
        """
        resolved = self._writable(model)
        self._check_payload(resolved, payload)

        async with self._use(session) as s:
            instance = await s.get(resolved, record_id)
            if instance is None:
                raise NotFoundError(
                    resource=resolved.__tablename__,
                    resource_id=str(record_id),
                )
            for name, value in payload.items():
                setattr(instance, resolved.__table__.columns[name].key, value)
            await s.flush()
            await s.refresh(instance)
            return instance

    async def delete(
        self,
        model: ModelRef,
        record_id: UUID,
        session: AsyncSession | None = None,
    ) -> None:
        """Delete one row.

        Raises:
            NotFoundError: If the row does not exist in this namespace
            ForbiddenError: When targeting the audit log or an auth-owned table
        """
        resolved = self._writable(model)

        async with self._use(session) as s:
            instance = await s.get(resolved, record_id)
            if instance is None:
                raise NotFoundError(
                    resource=resolved.__tablename__,
                    resource_id=str(record_id),
                )
            await s.delete(instance)
            await s.flush()


class TenantConnectionRouter:
    """Resolves tenant ids to scoped handles.

    Handles are created lazily, cached for the process lifetime and share
    the store's single connection pool.
    """

    def __init__(self, store: DataStore) -> None:
        self.store = store
        self._handles: dict[UUID, ScopedHandle] = {}
        import_models()

    def resolve(self, tenant_id: UUID | str) -> ScopedHandle:
        """Return the handle for a tenant.

        Does not check that the tenant exists or is active; the access gate
        does that before resolving.

        Raises:
            ValidationError: If ``tenant_id`` is not a tenant identifier
        """
        try:
            key = UUID(str(tenant_id))
            handle = self._handles.get(key)
            if handle is not None:
                return handle
            namespace = namespace_for(key)
        except (ValueError, InvalidNamespaceError) as e:
            raise ValidationError(
                "Invalid tenant identifier",
                errors=[{"field": "tenant_id", "message": "Not a tenant identifier"}],
            ) from e

        handle = ScopedHandle(
            tenant_id=key,
            namespace=namespace,
            session_factory=self.store.session_factory(
                schema_translate_map={None: namespace}
            ),
        )
        self._handles[key] = handle
        logger.debug("scoped_handle_created", tenant_id=str(key))
        return handle

    def discard(self, tenant_id: UUID) -> None:
        """Forget a cached handle, e.g. after a failed registration."""
        self._handles.pop(tenant_id, None)

    def __len__(self) -> int:
        return len(self._handles)
