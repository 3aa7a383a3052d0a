"""registry_schema

Revision ID: 7c1e2a9d0b31
Revises:
Create Date: 2026-10-01 00:01:00.000000

This migration adds:
- The admin registry schema
- tenants, with a unique administrator email
- tenant_members, the email to tenant directory used by login
- tenant_migrations, the namespace layout versions applied per tenant
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "7c1e2a9d0b31"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SCHEMA = "admin"


def upgrade() -> None:
    """Upgrade database schema."""
    op.execute(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}")
    # gen_random_uuid() is built in from PostgreSQL 13
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("admin_email", sa.String(255), nullable=False),
        sa.Column("license_number", sa.String(64), nullable=True),
        sa.Column("plan_type", sa.String(50), server_default="basic", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("max_users", sa.Integer(), server_default="5", nullable=False),
        sa.Column("max_storage_gb", sa.Integer(), server_default="10", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("admin_email"),
        schema=SCHEMA,
    )

    op.create_table(
        "tenant_members",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], [f"{SCHEMA}.tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "email"),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_admin_tenant_members_tenant_id", "tenant_members", ["tenant_id"], schema=SCHEMA
    )
    op.create_index("ix_admin_tenant_members_email", "tenant_members", ["email"], schema=SCHEMA)

    op.create_table(
        "tenant_migrations",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("migration_name", sa.String(255), nullable=False),
        sa.Column("executed_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], [f"{SCHEMA}.tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "migration_name"),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_admin_tenant_migrations_tenant_id", "tenant_migrations", ["tenant_id"], schema=SCHEMA
    )


def downgrade() -> None:
    """Downgrade database schema.

    Tenant namespaces are left in place; drop them separately.
    """
    op.drop_index("ix_admin_tenant_migrations_tenant_id", table_name="tenant_migrations", schema=SCHEMA)
    op.drop_table("tenant_migrations", schema=SCHEMA)
    op.drop_index("ix_admin_tenant_members_email", table_name="tenant_members", schema=SCHEMA)
    op.drop_index("ix_admin_tenant_members_tenant_id", table_name="tenant_members", schema=SCHEMA)
    op.drop_table("tenant_members", schema=SCHEMA)
    op.drop_table("tenants", schema=SCHEMA)
