"""Fixtures for tests that run against PostgreSQL."""

from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from lawdesk.core.audit.context import clear_audit_context
from lawdesk.core.auth.service import AuthService
from lawdesk.core.tenancy.provisioner import SchemaProvisioner
from lawdesk.core.tenancy.registry import TenantRegistry
from lawdesk.core.tenancy.router import TenantConnectionRouter
from tests.factories.tenant import RegisterRequestFactory


Organization = tuple[Any, Any, Any]


@pytest.fixture(autouse=True)
def _reset_audit_context():
    clear_audit_context()
    yield
    clear_audit_context()


@pytest.fixture
def auth_service(
    registry: TenantRegistry,
    provisioner: SchemaProvisioner,
    tenant_router: TenantConnectionRouter,
) -> AuthService:
    return AuthService(registry, provisioner, tenant_router)


@pytest.fixture
def make_organization(auth_service: AuthService) -> Callable[..., Awaitable[Organization]]:
    """Register organizations through the real registration flow.

    Returns (user, tenant, tokens) for each one created.
    """

    async def factory(**overrides: Any) -> Organization:
        data = RegisterRequestFactory.build(**overrides)
        return await auth_service.register(
            name=data.name,
            email=data.email,
            secret=data.secret,
            organization_name=data.organization_name,
            license_number=data.license_number,
        )

    return factory
