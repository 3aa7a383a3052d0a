"""Request audit context.

The audit trigger runs inside the database and cannot see the HTTP request.
The acting user and request details are stored in a ``ContextVar`` by the
access gate and copied into transaction-local settings at the start of every
scoped transaction, where the trigger reads them with ``current_setting``.
"""

from contextvars import ContextVar
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from lawdesk.core.constants import (
    AUDIT_SETTING_IP_ADDRESS,
    AUDIT_SETTING_REQUEST_ID,
    AUDIT_SETTING_USER_AGENT,
    AUDIT_SETTING_USER_ID,
    MAX_IPV6_LENGTH,
    MAX_REQUEST_ID_LENGTH,
    MAX_USER_AGENT_LENGTH,
)


@dataclass(frozen=True)
class AuditContext:
    """Who is acting, and from where."""

    user_id: UUID | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = None


_audit_context: ContextVar[AuditContext | None] = ContextVar("audit_context", default=None)


def set_audit_context(
    user_id: UUID | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    request_id: str | None = None,
) -> None:
    """Set the audit context for the current request.

    Args:
        user_id: The acting user
        ip_address: Client IP address
        user_agent: Client user agent
        request_id: Request correlation ID
    """
    _audit_context.set(
        AuditContext(
            user_id=user_id,
            ip_address=ip_address[:MAX_IPV6_LENGTH] if ip_address else None,
            user_agent=user_agent[:MAX_USER_AGENT_LENGTH] if user_agent else None,
            request_id=request_id[:MAX_REQUEST_ID_LENGTH] if request_id else None,
        )
    )


def clear_audit_context() -> None:
    """Clear the audit context after the request completes."""
    _audit_context.set(None)


def get_audit_context() -> AuditContext | None:
    """Get the audit context of the current task, if any."""
    return _audit_context.get()


async def apply_audit_context(session: AsyncSession) -> None:
    """Copy the current audit context into transaction-local settings.

    Must run inside the transaction whose mutations should be attributed.
    Settings are always written (possibly empty) so a pooled connection never
    carries another request's values.
    """
    context = get_audit_context() or AuditContext()
    await session.execute(
        text(
            "SELECT set_config(:user_key, :user_id, true), "
            "set_config(:ip_key, :ip_address, true), "
            "set_config(:agent_key, :user_agent, true), "
            "set_config(:request_key, :request_id, true)"
        ),
        {
            "user_key": AUDIT_SETTING_USER_ID,
            "user_id": str(context.user_id) if context.user_id else "",
            "ip_key": AUDIT_SETTING_IP_ADDRESS,
            "ip_address": context.ip_address or "",
            "agent_key": AUDIT_SETTING_USER_AGENT,
            "user_agent": context.user_agent or "",
            "request_key": AUDIT_SETTING_REQUEST_ID,
            "request_id": context.request_id or "",
        },
    )
