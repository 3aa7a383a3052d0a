"""Registry models: the system-wide catalog of tenants."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from lawdesk.core.constants import (
    DEFAULT_MAX_STORAGE_GB,
    DEFAULT_MAX_USERS,
    DEFAULT_PLAN_TYPE,
    MAX_EMAIL_LENGTH,
    MAX_LICENSE_NUMBER_LENGTH,
    MAX_NAME_LENGTH,
    REGISTRY_SCHEMA,
)
from lawdesk.core.database.base import RegistryBase, TimestampMixin, UUIDMixin
from lawdesk.core.database.namespace import namespace_for


class Tenant(RegistryBase, UUIDMixin, TimestampMixin):
    """A customer organization.

    The id is generated once at creation and never changes; the tenant's
    namespace name is derived from it.

    Attributes:
        name: Organization name
        admin_email: Email of the founding administrator, unique system-wide
        license_number: Professional licence identifier (e.g. bar number)
        plan_type: Subscription plan
        is_active: Inactive tenants cannot authenticate
        max_users: User limit of the plan
        max_storage_gb: Storage limit of the plan
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
    )
    admin_email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        unique=True,
    )
    license_number: Mapped[str | None] = mapped_column(
        String(MAX_LICENSE_NUMBER_LENGTH),
        nullable=True,
    )
    plan_type: Mapped[str] = mapped_column(
        String(50),
        default=DEFAULT_PLAN_TYPE,
        server_default=DEFAULT_PLAN_TYPE,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default="true",
        nullable=False,
    )
    max_users: Mapped[int] = mapped_column(
        Integer,
        default=DEFAULT_MAX_USERS,
        server_default=str(DEFAULT_MAX_USERS),
        nullable=False,
    )
    max_storage_gb: Mapped[int] = mapped_column(
        Integer,
        default=DEFAULT_MAX_STORAGE_GB,
        server_default=str(DEFAULT_MAX_STORAGE_GB),
        nullable=False,
    )

    @property
    def namespace(self) -> str:
        """Name of the tenant's isolated namespace."""
        return namespace_for(self.id)

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name={self.name}, is_active={self.is_active})>"


class TenantMember(RegistryBase, UUIDMixin):
    """Directory entry mapping a user email to the tenant holding it.

    Login consults this table to find the caller's namespace instead of
    scanning every tenant.
    """

    __tablename__ = "tenant_members"
    __table_args__ = (UniqueConstraint("tenant_id", "email"),)

    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{REGISTRY_SCHEMA}.tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(nullable=False)
    email: Mapped[str] = mapped_column(
        String(MAX_EMAIL_LENGTH),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<TenantMember(tenant_id={self.tenant_id}, email={self.email})>"


class TenantMigration(RegistryBase, UUIDMixin):
    """Namespace layout versions applied to a tenant."""

    __tablename__ = "tenant_migrations"
    __table_args__ = (UniqueConstraint("tenant_id", "migration_name"),)

    tenant_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{REGISTRY_SCHEMA}.tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    migration_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    executed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
