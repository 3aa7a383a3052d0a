"""Audit log database model.

One row per mutation of an audited table, written by the namespace audit
trigger in the same transaction as the mutation. Rows are never updated or
deleted.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from lawdesk.core.constants import MAX_IPV6_LENGTH, MAX_REQUEST_ID_LENGTH
from lawdesk.core.database.base import TenantBase, UUIDMixin, one_of


AUDIT_OPERATIONS = ("CREATE", "UPDATE", "DELETE")


class AuditLog(TenantBase, UUIDMixin):
    """Audit log entry for a single row mutation.

    Attributes:
        user_id: The acting user (nullable for system actions; no foreign key
            so history survives user deletion)
        table_name: The mutated table
        record_id: Primary key of the mutated row
        operation: CREATE, UPDATE or DELETE
        old_data: Row snapshot before the change (UPDATE, DELETE)
        new_data: Row snapshot after the change (CREATE, UPDATE)
        ip_address: Client IP address
        user_agent: Client user agent string
        request_id: Correlation ID for request tracing
        timestamp: When the mutation happened
    """

    __tablename__ = "audit_log"
    __table_args__ = (
        CheckConstraint(one_of("operation", AUDIT_OPERATIONS), name="ck_audit_log_operation"),
    )

    user_id: Mapped[UUID | None] = mapped_column(
        nullable=True,
        index=True,
    )
    table_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        index=True,
    )
    record_id: Mapped[UUID | None] = mapped_column(
        nullable=True,
        index=True,
    )
    operation: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )
    old_data: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
    )
    new_data: Mapped[dict[str, Any] | None] = mapped_column(
        JSONB,
        nullable=True,
    )
    ip_address: Mapped[str | None] = mapped_column(
        String(MAX_IPV6_LENGTH),
        nullable=True,
    )
    user_agent: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    request_id: Mapped[str | None] = mapped_column(
        String(MAX_REQUEST_ID_LENGTH),
        nullable=True,
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, operation={self.operation}, "
            f"table_name={self.table_name}, record_id={self.record_id})>"
        )
