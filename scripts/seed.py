#!/usr/bin/env python
"""
Bootstrap the registry and create demo organizations for development.

Runs outside the application: it uses the same public registration flow as
the HTTP API, so every demo tenant gets a fully provisioned namespace.

Usage:
    python scripts/seed.py --scenario default
"""

import argparse
import asyncio
import sys

from sqlalchemy.schema import CreateSchema

from lawdesk.config import settings
from lawdesk.core.auth.service import AuthService
from lawdesk.core.constants import REGISTRY_SCHEMA
from lawdesk.core.database.base import RegistryBase
from lawdesk.core.database.store import DataStore
from lawdesk.core.errors import DuplicateAdminEmailError
from lawdesk.core.tenancy.provisioner import SchemaProvisioner
from lawdesk.core.tenancy.registry import TenantRegistry
from lawdesk.core.tenancy.router import TenantConnectionRouter


DEMO_SECRET = "Secret123!"

SCENARIOS: dict[str, list[dict[str, str]]] = {
    "default": [
        {"organization_name": "Default Organization", "name": "Admin", "email": "admin@example.test"},
    ],
    "demo": [
        {"organization_name": "Acme Law", "name": "Alex Acme", "email": "a@acme.test"},
        {"organization_name": "Globex Legal", "name": "Gale Globex", "email": "g@globex.test"},
        {"organization_name": "Initech Counsel", "name": "Ira Initech", "email": "i@initech.test"},
    ],
}


async def bootstrap_registry(store: DataStore) -> None:
    """Create the registry schema and tables if absent."""
    async with store.engine.begin() as conn:
        await conn.execute(CreateSchema(REGISTRY_SCHEMA, if_not_exists=True))
        await conn.run_sync(RegistryBase.metadata.create_all, checkfirst=True)
    print(f"Registry schema ready: {REGISTRY_SCHEMA}")


async def seed(scenario: str) -> None:
    """Register every organization of a scenario."""
    store = DataStore.from_settings(settings)
    registry = TenantRegistry(store)
    service = AuthService(
        registry=registry,
        provisioner=SchemaProvisioner(store, registry),
        router=TenantConnectionRouter(store),
    )

    try:
        await bootstrap_registry(store)

        for data in SCENARIOS[scenario]:
            try:
                _user, tenant, _tokens = await service.register(
                    name=data["name"],
                    email=data["email"],
                    secret=DEMO_SECRET,
                    organization_name=data["organization_name"],
                    license_number="DEMO-0001",
                )
            except DuplicateAdminEmailError:
                print(f"Organization already exists: {data['organization_name']}")
                continue
            print(f"Created organization: {tenant.name} ({tenant.id}) admin={data['email']}")
    finally:
        await store.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed database with demo data")
    parser.add_argument(
        "--scenario",
        "-s",
        default="default",
        help=f"Seed scenario to run ({', '.join(SCENARIOS)})",
    )
    args = parser.parse_args()

    if args.scenario not in SCENARIOS:
        print(f"Unknown scenario: {args.scenario}")
        print(f"Available scenarios: {', '.join(SCENARIOS)}")
        sys.exit(1)

    asyncio.run(seed(args.scenario))


if __name__ == "__main__":
    main()
