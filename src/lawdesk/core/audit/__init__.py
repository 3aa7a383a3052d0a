"""Append-only audit trail of data mutations."""

from lawdesk.core.audit.context import (
    AuditContext,
    apply_audit_context,
    clear_audit_context,
    get_audit_context,
    set_audit_context,
)
from lawdesk.core.audit.models import AuditLog
from lawdesk.core.audit.triggers import audit_ddl


__all__ = [
    "AuditContext",
    "AuditLog",
    "apply_audit_context",
    "audit_ddl",
    "clear_audit_context",
    "get_audit_context",
    "set_audit_context",
]
