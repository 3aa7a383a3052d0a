"""Database layer - data store, base models, mixins and namespace naming."""

from lawdesk.core.database.base import (
    AuditMixin,
    CreatedAtMixin,
    RegistryBase,
    TenantBase,
    TimestampMixin,
    UUIDMixin,
)
from lawdesk.core.database.namespace import (
    InvalidNamespaceError,
    namespace_for,
    validate_namespace,
)
from lawdesk.core.database.store import DataStore


__all__ = [
    "AuditMixin",
    "CreatedAtMixin",
    "DataStore",
    "InvalidNamespaceError",
    "RegistryBase",
    "TenantBase",
    "TimestampMixin",
    "UUIDMixin",
    "namespace_for",
    "validate_namespace",
]
