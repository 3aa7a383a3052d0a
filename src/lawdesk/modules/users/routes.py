"""User API routes.

Note: Authentication routes (login, register, refresh) are in
the auth module. This module handles user management endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from lawdesk.core.auth.dependencies import require_min_tier, require_tiers
from lawdesk.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from lawdesk.core.permissions.tiers import AccountTier
from lawdesk.modules.users.schemas import UserCreate, UserListResponse, UserResponse
from lawdesk.modules.users.services import UserSvc


router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=UserListResponse,
    dependencies=[Depends(require_min_tier(AccountTier.INTERMEDIATE))],
    summary="List users",
    description="List the users of the current organization. Requires intermediate tier or above.",
)
async def list_users(
    service: UserSvc,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(
        DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize", description="Items per page"
    ),
) -> UserListResponse:
    """List users in tenant."""
    users, total = await service.list_users(page, page_size)
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_tiers(AccountTier.MANAGERIAL))],
    summary="Create user",
    description="Add a user to the current organization. Requires managerial tier.",
)
async def create_user(
    data: UserCreate,
    service: UserSvc,
) -> UserResponse:
    """Create a user in tenant."""
    user = await service.create_user(data)
    return UserResponse.model_validate(user)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    dependencies=[Depends(require_min_tier(AccountTier.INTERMEDIATE))],
    summary="Get user by ID",
    description="Get a user of the current organization. Requires intermediate tier or above.",
)
async def get_user(
    user_id: UUID,
    service: UserSvc,
) -> UserResponse:
    """Get user by ID."""
    user = await service.get_user(user_id)
    return UserResponse.model_validate(user)
