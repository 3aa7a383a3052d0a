"""Helpers shared by the test modules."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

from lawdesk.core.auth.backend import create_access_token
from lawdesk.core.permissions.tiers import AccountTier


def bearer(
    tier: AccountTier = AccountTier.MANAGERIAL,
    user_id: UUID | None = None,
    tenant_id: UUID | None = None,
    **kwargs: Any,
) -> dict[str, str]:
    """Authorization header carrying a freshly signed access token."""
    token = create_access_token(
        user_id=user_id or uuid4(),
        tenant_id=tenant_id or uuid4(),
        tier=tier,
        email="someone@example.test",
        name="Some One",
        **kwargs,
    )
    return {"Authorization": f"Bearer {token}"}


class FakeHandle:
    """Stand-in for a ScopedHandle whose sessions are mocks."""

    def __init__(self, tenant_id: UUID | None = None) -> None:
        self.tenant_id = tenant_id or uuid4()
        self.db = MagicMock()
        self.db.execute = AsyncMock()
        self.db.flush = AsyncMock()
        self.db.refresh = AsyncMock()
        self.db.get = AsyncMock(return_value=None)
        self.read = AsyncMock(return_value=[])
        self.get = AsyncMock(return_value=None)
        self.insert = AsyncMock()
        self.update = AsyncMock()
        self.delete = AsyncMock()

    @asynccontextmanager
    async def session(self) -> AsyncIterator[MagicMock]:
        yield self.db
