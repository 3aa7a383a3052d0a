"""Business tables of a tenant namespace.

The core only provisions these tables and routes access to them; their
business rules live with the feature modules that consume them. Tables
carrying ``AuditMixin`` are tracked by the audit trigger.
"""

import datetime as dt
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from lawdesk.core.database.base import (
    AuditMixin,
    CreatedAtMixin,
    TenantBase,
    TimestampMixin,
    UUIDMixin,
)


Money = Numeric(15, 2)

PRIORITIES = "('low', 'medium', 'high', 'urgent')"
URGENCIES = "('low', 'medium', 'high')"


class Client(TenantBase, UUIDMixin, TimestampMixin, AuditMixin):
    """A client of the organization."""

    __tablename__ = "clients"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    organization: Mapped[str | None] = mapped_column(String(255))
    email: Mapped[str | None] = mapped_column(String(255))
    mobile: Mapped[str] = mapped_column(String(50), nullable=False)
    country: Mapped[str] = mapped_column(String(2), default="BR", server_default="BR", nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255))
    zip_code: Mapped[str | None] = mapped_column(String(20))
    budget: Mapped[Decimal] = mapped_column(Money, default=0, server_default="0", nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="BRL", server_default="BRL", nullable=False)
    level: Mapped[str | None] = mapped_column(String(50))
    description: Mapped[str | None] = mapped_column(Text)
    tax_id: Mapped[str | None] = mapped_column(String(20))
    identity_document: Mapped[str | None] = mapped_column(String(20))
    social_security_number: Mapped[str | None] = mapped_column(String(20))
    professional_title: Mapped[str | None] = mapped_column(String(100))
    marital_status: Mapped[str | None] = mapped_column(String(50))
    birth_date: Mapped[dt.date | None] = mapped_column(Date)
    benefit_status: Mapped[str | None] = mapped_column(String(50))
    amount_paid: Mapped[Decimal] = mapped_column(Money, default=0, server_default="0", nullable=False)
    referred_by: Mapped[str | None] = mapped_column(String(255))
    registered_by: Mapped[str | None] = mapped_column(String(255))
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(Text))
    status: Mapped[str] = mapped_column(String(20), default="active", server_default="active", nullable=False)
    created_by: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"), index=True)


class Project(TenantBase, UUIDMixin, TimestampMixin, AuditMixin):
    """A case or engagement, tracked through a sales pipeline."""

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint(
            "status IN ('contacted', 'proposal', 'won', 'lost')", name="ck_projects_status"
        ),
        CheckConstraint(f"priority IN {PRIORITIES}", name="ck_projects_priority"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_projects_progress"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[UUID | None] = mapped_column(ForeignKey("clients.id"), index=True)
    organization: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str | None] = mapped_column(String(255))
    budget: Mapped[Decimal] = mapped_column(Money, default=0, server_default="0", nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="BRL", server_default="BRL", nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="contacted", server_default="contacted", nullable=False)
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    due_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    priority: Mapped[str] = mapped_column(String(10), default="medium", server_default="medium", nullable=False)
    progress: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(Text))
    assigned_to: Mapped[list[str] | None] = mapped_column(ARRAY(Text))
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str | None] = mapped_column(String(255))


class ProjectContact(TenantBase, UUIDMixin, CreatedAtMixin):
    """A contact person attached to a project."""

    __tablename__ = "project_contacts"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    role: Mapped[str] = mapped_column(String(100), nullable=False)


class Task(TenantBase, UUIDMixin, TimestampMixin, AuditMixin):
    """A unit of work, optionally linked to a project or client."""

    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(
            "status IN ('not_started', 'in_progress', 'completed', 'on_hold', 'cancelled')",
            name="ck_tasks_status",
        ),
        CheckConstraint(f"priority IN {PRIORITIES}", name="ck_tasks_priority"),
        CheckConstraint("progress >= 0 AND progress <= 100", name="ck_tasks_progress"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    start_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="not_started", server_default="not_started", nullable=False)
    priority: Mapped[str] = mapped_column(String(10), default="medium", server_default="medium", nullable=False)
    assigned_to: Mapped[str] = mapped_column(String(255), nullable=False)
    project_id: Mapped[UUID | None] = mapped_column(ForeignKey("projects.id"), index=True)
    client_id: Mapped[UUID | None] = mapped_column(ForeignKey("clients.id"), index=True)
    estimated_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0, server_default="0", nullable=False)
    actual_hours: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0, server_default="0", nullable=False)
    progress: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(Text))
    notes: Mapped[str | None] = mapped_column(Text)
    completed_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True))


class Subtask(TenantBase, UUIDMixin, CreatedAtMixin):
    """A checklist item of a task."""

    __tablename__ = "subtasks"

    task_id: Mapped[UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    completed_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True))


class CashFlowEntry(TenantBase, UUIDMixin, TimestampMixin, AuditMixin):
    """An income or expense transaction."""

    __tablename__ = "cash_flow"
    __table_args__ = (
        CheckConstraint("type IN ('income', 'expense')", name="ck_cash_flow_type"),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'cancelled')", name="ck_cash_flow_status"
        ),
        CheckConstraint(
            "recurring_frequency IS NULL OR "
            "recurring_frequency IN ('monthly', 'quarterly', 'yearly')",
            name="ck_cash_flow_recurring_frequency",
        ),
    )

    type: Mapped[str] = mapped_column(String(10), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    category_id: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    payment_method: Mapped[str | None] = mapped_column(String(50))
    status: Mapped[str] = mapped_column(String(20), default="confirmed", server_default="confirmed", nullable=False)
    project_id: Mapped[UUID | None] = mapped_column(ForeignKey("projects.id"))
    client_id: Mapped[UUID | None] = mapped_column(ForeignKey("clients.id"))
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(Text))
    notes: Mapped[str | None] = mapped_column(Text)
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    recurring_frequency: Mapped[str | None] = mapped_column(String(20))
    created_by: Mapped[str | None] = mapped_column(String(255))
    last_modified_by: Mapped[str | None] = mapped_column(String(255))


class BillingDocument(TenantBase, UUIDMixin, TimestampMixin, AuditMixin):
    """An estimate or invoice issued by the organization."""

    __tablename__ = "billing_documents"
    __table_args__ = (
        CheckConstraint("type IN ('estimate', 'invoice')", name="ck_billing_documents_type"),
        CheckConstraint(
            "discount_type IN ('percentage', 'fixed') AND fee_type IN ('percentage', 'fixed') "
            "AND tax_type IN ('percentage', 'fixed')",
            name="ck_billing_documents_adjustment_types",
        ),
    )

    type: Mapped[str] = mapped_column(String(10), nullable=False)
    number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    due_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    sender_id: Mapped[str] = mapped_column(String(100), nullable=False)
    sender_name: Mapped[str] = mapped_column(String(255), nullable=False)
    receiver_id: Mapped[str] = mapped_column(String(100), nullable=False)
    receiver_name: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    subtotal: Mapped[Decimal] = mapped_column(Money, nullable=False)
    discount: Mapped[Decimal] = mapped_column(Money, default=0, server_default="0", nullable=False)
    discount_type: Mapped[str] = mapped_column(String(10), default="fixed", server_default="fixed", nullable=False)
    fee: Mapped[Decimal] = mapped_column(Money, default=0, server_default="0", nullable=False)
    fee_type: Mapped[str] = mapped_column(String(10), default="fixed", server_default="fixed", nullable=False)
    tax: Mapped[Decimal] = mapped_column(Money, default=0, server_default="0", nullable=False)
    tax_type: Mapped[str] = mapped_column(String(10), default="percentage", server_default="percentage", nullable=False)
    total: Mapped[Decimal] = mapped_column(Money, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="BRL", server_default="BRL", nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(Text))
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str | None] = mapped_column(String(255))
    last_modified_by: Mapped[str | None] = mapped_column(String(255))


class BillingItem(TenantBase, UUIDMixin, CreatedAtMixin):
    """A line of a billing document."""

    __tablename__ = "billing_items"

    document_id: Mapped[UUID] = mapped_column(
        ForeignKey("billing_documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    rate: Mapped[Decimal] = mapped_column(Money, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    tax: Mapped[Decimal] = mapped_column(Numeric(5, 2), default=0, server_default="0", nullable=False)


class ReceivablesInvoice(TenantBase, UUIDMixin, TimestampMixin, AuditMixin):
    """An invoice owed to the organization, with collection tracking."""

    __tablename__ = "receivables_invoices"
    __table_args__ = (
        CheckConstraint(
            "status IN ('new', 'pending', 'assigned', 'paid', 'overdue', 'cancelled', 'processing')",
            name="ck_receivables_invoices_status",
        ),
        CheckConstraint(f"urgency IN {URGENCIES}", name="ck_receivables_invoices_urgency"),
    )

    client_id: Mapped[UUID | None] = mapped_column(ForeignKey("clients.id"), index=True)
    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    service_rendered: Mapped[str] = mapped_column(String(255), nullable=False)
    issue_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    due_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    paid_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(20), default="new", server_default="new", nullable=False)
    collection_attempts: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    payment_provider_invoice_id: Mapped[str | None] = mapped_column(String(255))
    payment_provider_customer_id: Mapped[str | None] = mapped_column(String(255))
    payment_link: Mapped[str | None] = mapped_column(Text)
    last_notified_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True))
    next_notification_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True))
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    interval_days: Mapped[int] = mapped_column(Integer, default=30, server_default="30", nullable=False)
    next_invoice_date: Mapped[dt.date | None] = mapped_column(Date)
    urgency: Mapped[str] = mapped_column(String(10), default="medium", server_default="medium", nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(255))
    notes: Mapped[str | None] = mapped_column(Text)


class Publication(TenantBase, UUIDMixin, TimestampMixin):
    """A court gazette publication assigned to a user."""

    __tablename__ = "publications"
    __table_args__ = (
        CheckConstraint(
            "status IN ('new', 'pending', 'assigned', 'done', 'discarded')",
            name="ck_publications_status",
        ),
        CheckConstraint(f"urgency IN {URGENCIES}", name="ck_publications_urgency"),
    )

    user_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"), index=True)
    published_on: Mapped[dt.date] = mapped_column(Date, nullable=False)
    case_reference: Mapped[str] = mapped_column(String(100), nullable=False)
    gazette: Mapped[str] = mapped_column(String(255), nullable=False)
    court: Mapped[str] = mapped_column(String(255), nullable=False)
    searched_name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="new", server_default="new", nullable=False)
    content: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    responsible: Mapped[str | None] = mapped_column(String(255))
    urgency: Mapped[str] = mapped_column(String(10), default="medium", server_default="medium", nullable=False)
    case_number: Mapped[str | None] = mapped_column(String(100))
    client_name: Mapped[str | None] = mapped_column(String(255))


class Notification(TenantBase, UUIDMixin, CreatedAtMixin):
    """An in-app notification for a user."""

    __tablename__ = "notifications"

    user_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"), index=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)
    created_by: Mapped[str | None] = mapped_column(String(255))
    details: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(50))
    action_data: Mapped[dict[str, Any] | None] = mapped_column(JSONB)


class FileAttachment(TenantBase, UUIDMixin, CreatedAtMixin):
    """Metadata of a file stored outside the database."""

    __tablename__ = "file_attachments"

    module: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    storage_url: Mapped[str | None] = mapped_column(String(1024))
    storage_key: Mapped[str | None] = mapped_column(String(1024))
    uploaded_by: Mapped[UUID | None] = mapped_column(ForeignKey("users.id"))
