"""Pydantic schemas for tenant data."""

from datetime import datetime
from uuid import UUID

from lawdesk.core.schemas import CamelModel


class TenantResponse(CamelModel):
    """Public view of a tenant."""

    id: UUID
    name: str
    admin_email: str
    license_number: str | None = None
    plan_type: str
    is_active: bool
    max_users: int
    max_storage_gb: int
    created_at: datetime
