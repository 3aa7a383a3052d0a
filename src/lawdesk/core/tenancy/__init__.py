"""Multi-tenancy: registry, namespace provisioning and scoped data access."""

from lawdesk.core.tenancy.models import Tenant, TenantMember, TenantMigration
from lawdesk.core.tenancy.provisioner import SchemaProvisioner
from lawdesk.core.tenancy.registry import TenantRegistry
from lawdesk.core.tenancy.router import ScopedHandle, TenantConnectionRouter


__all__ = [
    "SchemaProvisioner",
    "ScopedHandle",
    "Tenant",
    "TenantConnectionRouter",
    "TenantMember",
    "TenantMigration",
    "TenantRegistry",
]
