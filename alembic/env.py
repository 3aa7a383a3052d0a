"""Alembic environment for the tenant registry.

Only the registry schema is managed here. Tenant namespaces are created
and versioned by the SchemaProvisioner.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.schema import CreateSchema

from lawdesk.config import settings
from lawdesk.core.constants import REGISTRY_SCHEMA
from lawdesk.core.database.base import RegistryBase
from lawdesk.core.tenancy import models  # noqa: F401  registers registry tables


config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = RegistryBase.metadata


def include_name(name: str | None, type_: str, parent_names: dict[str, str | None]) -> bool:
    """Restrict autogenerate to the registry schema."""
    if type_ == "schema":
        return name == REGISTRY_SCHEMA
    return True


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode, emitting SQL to stdout."""
    context.configure(
        url=settings.async_database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_schemas=True,
        include_name=include_name,
        version_table_schema=REGISTRY_SCHEMA,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    connection.execute(CreateSchema(REGISTRY_SCHEMA, if_not_exists=True))
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        include_schemas=True,
        include_name=include_name,
        version_table_schema=REGISTRY_SCHEMA,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations against a live database."""
    engine = create_async_engine(settings.async_database_url)

    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)
        await connection.commit()

    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
