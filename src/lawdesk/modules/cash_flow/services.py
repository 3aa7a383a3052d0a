"""Cash-flow service.

A thin consumer of the tenant handle: it never names a namespace and never
writes audit entries, both are taken care of below it.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends

from lawdesk.core.auth.dependencies import CurrentClaims, TenantHandle
from lawdesk.modules.cash_flow.schemas import TransactionCreate, TransactionUpdate
from lawdesk.modules.workspace.models import CashFlowEntry


class CashFlowService:
    """Service for cash-flow transactions of the caller's tenant."""

    def __init__(self, handle: TenantHandle, claims: CurrentClaims) -> None:
        self.handle = handle
        self.claims = claims

    async def list_transactions(
        self,
        type: str | None = None,
        category: str | None = None,
        status: str | None = None,
        search: str | None = None,
        limit: int | None = None,
    ) -> list[CashFlowEntry]:
        """List transactions, newest first.

        Args:
            type: Only this transaction type
            category: Only this category
            status: Only this status
            search: Case-insensitive substring of the description
            limit: Maximum number of transactions

        Returns:
            Matching transactions
        """
        filters: dict[str, Any] = {}
        if type:
            filters["type"] = type
        if category:
            filters["category_id"] = category
        if status:
            filters["status"] = status

        entries = await self.handle.read(
            CashFlowEntry,
            filters=filters,
            order_by=["-date", "-created_at"],
            limit=None if search else limit,
        )

        if search:
            term = search.lower()
            entries = [e for e in entries if term in e.description.lower()][:limit]
        return entries

    async def create_transaction(self, data: TransactionCreate) -> CashFlowEntry:
        """Record a transaction on behalf of the caller."""
        payload = data.model_dump()
        payload["created_by"] = self.claims.name
        return await self.handle.insert(CashFlowEntry, payload)

    async def update_transaction(self, entry_id: UUID, data: TransactionUpdate) -> CashFlowEntry:
        """Apply the fields sent in ``data`` to a transaction.

        An explicit null clears an optional field.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        payload = data.model_dump(exclude_unset=True)
        payload["last_modified_by"] = self.claims.name
        return await self.handle.update(CashFlowEntry, entry_id, payload)

    async def delete_transaction(self, entry_id: UUID) -> None:
        """Delete a transaction.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        await self.handle.delete(CashFlowEntry, entry_id)


# Type alias for dependency injection
CashFlowSvc = Annotated[CashFlowService, Depends(CashFlowService)]
