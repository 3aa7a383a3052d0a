"""Unit tests for the request audit context."""

from unittest.mock import AsyncMock
from uuid import uuid4

from lawdesk.core.audit.context import (
    apply_audit_context,
    clear_audit_context,
    get_audit_context,
    set_audit_context,
)
from lawdesk.core.constants import MAX_REQUEST_ID_LENGTH, MAX_USER_AGENT_LENGTH


class TestAuditContext:
    """Tests for setting and applying the audit context."""

    def test_set_and_clear(self):
        """set_audit_context should be visible until cleared."""
        user_id = uuid4()
        set_audit_context(user_id=user_id, ip_address="203.0.113.9", request_id="req-1")

        context = get_audit_context()
        assert context is not None
        assert context.user_id == user_id
        assert context.ip_address == "203.0.113.9"
        assert context.request_id == "req-1"

        clear_audit_context()
        assert get_audit_context() is None

    def test_user_agent_truncated(self):
        """Oversized user agents should be cut to the column size."""
        set_audit_context(user_agent="x" * (MAX_USER_AGENT_LENGTH * 2))

        context = get_audit_context()
        assert context is not None
        assert len(context.user_agent or "") == MAX_USER_AGENT_LENGTH
        clear_audit_context()

    async def test_request_id_fits_audit_column(self):
        """A caller-chosen request ID longer than the audit column should be cut."""
        session = AsyncMock()
        set_audit_context(request_id="r" * 200)

        await apply_audit_context(session)

        _, params = session.execute.await_args.args
        assert params["request_id"] == "r" * MAX_REQUEST_ID_LENGTH
        clear_audit_context()

    async def test_apply_writes_transaction_settings(self):
        """apply_audit_context should pass the context as bound parameters."""
        user_id = uuid4()
        session = AsyncMock()
        set_audit_context(user_id=user_id, ip_address="203.0.113.9", user_agent="pytest")

        await apply_audit_context(session)

        statement, params = session.execute.await_args.args
        assert "set_config" in str(statement)
        assert params["user_id"] == str(user_id)
        assert params["ip_address"] == "203.0.113.9"
        assert params["user_agent"] == "pytest"
        assert params["request_id"] == ""
        clear_audit_context()

    async def test_apply_without_context_resets_settings(self):
        """Without a context every setting should be written empty."""
        session = AsyncMock()
        clear_audit_context()

        await apply_audit_context(session)

        _, params = session.execute.await_args.args
        assert params["user_id"] == ""
        assert params["ip_address"] == ""
        assert params["user_agent"] == ""
