"""Pydantic schemas for user operations."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from lawdesk.core.auth.schemas import TokenPair, validate_secret_complexity
from lawdesk.core.constants import MAX_NAME_LENGTH, MAX_SECRET_LENGTH, MIN_SECRET_LENGTH
from lawdesk.core.permissions.tiers import AccountTier
from lawdesk.core.schemas import CamelModel, EmailAddress
from lawdesk.core.tenancy.schemas import TenantResponse


class UserCreate(CamelModel):
    """Schema for adding a user to the caller's tenant."""

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: EmailAddress
    secret: str = Field(..., min_length=MIN_SECRET_LENGTH, max_length=MAX_SECRET_LENGTH)
    phone: str | None = Field(None, max_length=50)
    account_tier: AccountTier = AccountTier.BASIC

    @field_validator("secret")
    @classmethod
    def secret_complexity(cls, v: str) -> str:
        """Validate secret complexity."""
        return validate_secret_complexity(v)


class UserResponse(CamelModel):
    """Schema for user response data."""

    id: UUID
    email: str
    name: str
    phone: str | None = None
    account_tier: AccountTier
    is_active: bool
    must_change_password: bool
    last_login: datetime | None = None
    created_at: datetime


class UserListResponse(CamelModel):
    """Schema for listing users."""

    items: list[UserResponse]
    total: int
    page: int
    page_size: int


class AuthResponse(CamelModel):
    """Schema for the register and login responses."""

    user: UserResponse
    tenant: TenantResponse
    tokens: TokenPair
