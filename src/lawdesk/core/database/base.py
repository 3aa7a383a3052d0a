"""SQLAlchemy declarative bases and common mixins.

Two metadata collections exist:

- ``RegistryBase`` holds the system-wide catalog, pinned to the registry schema.
- ``TenantBase`` holds the per-tenant table set. Its tables are declared
  without a schema and are placed into a tenant namespace at execution time
  through ``schema_translate_map``; they are never created in ``public``.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime, MetaData, func, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from lawdesk.core.constants import REGISTRY_SCHEMA


class RegistryBase(DeclarativeBase):
    """Base class for models in the system-wide registry schema."""

    metadata = MetaData(schema=REGISTRY_SCHEMA)


class TenantBase(DeclarativeBase):
    """Base class for models that live inside a tenant namespace."""

    pass


class UUIDMixin:
    """Mixin that adds a UUID primary key."""

    id: Mapped[UUID] = mapped_column(
        primary_key=True,
        default=uuid4,
        server_default=text("gen_random_uuid()"),
    )


class CreatedAtMixin:
    """Mixin that adds a created_at timestamp."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )


class TimestampMixin(CreatedAtMixin):
    """Mixin that adds created_at and updated_at timestamps."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class AuditMixin:
    """Marker mixin to enable automatic audit logging.

    The provisioner attaches the namespace audit trigger to every table whose
    model carries ``__audit__ = True``. Changes are captured by the database
    itself, in the same transaction as the mutation.

    Example:
        class Client(TenantBase, UUIDMixin, TimestampMixin, AuditMixin):
            __tablename__ = "clients"
            name: Mapped[str] = mapped_column(String(255))
    """

    # Marker attribute checked by the provisioner
    __audit__: bool = True


def one_of(column: str, values: tuple[str, ...], nullable: bool = False) -> str:
    """Build the SQL for a CHECK constraint restricting ``column`` to ``values``."""
    allowed = ", ".join(f"'{value}'" for value in values)
    condition = f"{column} IN ({allowed})"
    return f"{column} IS NULL OR {condition}" if nullable else condition
