"""Cash-flow API routes.

Available to intermediate and managerial accounts.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from lawdesk.core.auth.dependencies import require_tiers
from lawdesk.core.constants import MAX_PAGE_SIZE
from lawdesk.core.permissions.tiers import AccountTier
from lawdesk.core.schemas import MessageResponse
from lawdesk.modules.cash_flow.schemas import (
    TransactionCreate,
    TransactionResponse,
    TransactionStatus,
    TransactionType,
    TransactionUpdate,
)
from lawdesk.modules.cash_flow.services import CashFlowSvc


router = APIRouter(
    prefix="/cash-flow",
    tags=["cash-flow"],
    dependencies=[Depends(require_tiers(AccountTier.INTERMEDIATE, AccountTier.MANAGERIAL))],
)


@router.get(
    "/transactions",
    response_model=list[TransactionResponse],
    summary="List transactions",
    description="List the organization's transactions, newest first.",
)
async def list_transactions(
    service: CashFlowSvc,
    type_: TransactionType | None = Query(None, alias="type", description="Transaction type"),
    category: str | None = Query(None, description="Category id"),
    status_: TransactionStatus | None = Query(None, alias="status", description="Transaction status"),
    search: str | None = Query(None, description="Text to look for in descriptions"),
    limit: int | None = Query(None, ge=1, le=MAX_PAGE_SIZE, description="Maximum items"),
) -> list[TransactionResponse]:
    """List transactions."""
    entries = await service.list_transactions(
        type=type_,
        category=category,
        status=status_,
        search=search,
        limit=limit,
    )
    return [TransactionResponse.model_validate(e) for e in entries]


@router.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create transaction",
    description="Record an income or expense.",
)
async def create_transaction(
    data: TransactionCreate,
    service: CashFlowSvc,
) -> TransactionResponse:
    """Create a transaction."""
    entry = await service.create_transaction(data)
    return TransactionResponse.model_validate(entry)


@router.put(
    "/transactions/{entry_id}",
    response_model=TransactionResponse,
    summary="Update transaction",
    description="Change the fields sent of an existing transaction.",
)
async def update_transaction(
    entry_id: UUID,
    data: TransactionUpdate,
    service: CashFlowSvc,
) -> TransactionResponse:
    """Update a transaction."""
    entry = await service.update_transaction(entry_id, data)
    return TransactionResponse.model_validate(entry)


@router.delete(
    "/transactions/{entry_id}",
    response_model=MessageResponse,
    summary="Delete transaction",
    description="Remove a transaction.",
)
async def delete_transaction(
    entry_id: UUID,
    service: CashFlowSvc,
) -> MessageResponse:
    """Delete a transaction."""
    await service.delete_transaction(entry_id)
    return MessageResponse(message="Transaction deleted")
