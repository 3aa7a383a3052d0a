"""Shared API dependencies.

Long-lived components are built once in ``create_app`` and kept on
``app.state``; these dependencies hand them to routes and services.
"""

from typing import Annotated

from fastapi import Depends, Request

from lawdesk.core.database.store import DataStore
from lawdesk.core.tenancy.provisioner import SchemaProvisioner
from lawdesk.core.tenancy.registry import TenantRegistry
from lawdesk.core.tenancy.router import TenantConnectionRouter


def get_store(request: Request) -> DataStore:
    return request.app.state.store


def get_registry(request: Request) -> TenantRegistry:
    return request.app.state.registry


def get_provisioner(request: Request) -> SchemaProvisioner:
    return request.app.state.provisioner


def get_router(request: Request) -> TenantConnectionRouter:
    return request.app.state.router


# Type aliases for dependency injection
Store = Annotated[DataStore, Depends(get_store)]
Registry = Annotated[TenantRegistry, Depends(get_registry)]
Provisioner = Annotated[SchemaProvisioner, Depends(get_provisioner)]
Router = Annotated[TenantConnectionRouter, Depends(get_router)]
