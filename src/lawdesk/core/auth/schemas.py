"""Authentication schemas for token handling and the auth endpoints."""

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from lawdesk.core.constants import (
    MAX_LICENSE_NUMBER_LENGTH,
    MAX_NAME_LENGTH,
    MAX_SECRET_LENGTH,
    MIN_SECRET_LENGTH,
)
from lawdesk.core.permissions.tiers import AccountTier
from lawdesk.core.schemas import CamelModel, EmailAddress


# ============================================================
# Secret Validation
# ============================================================

# Secret complexity rules: (regex pattern, human-readable name)
SECRET_COMPLEXITY_RULES: list[tuple[str, str]] = [
    (r"[A-Za-z]", "letter"),
    (r"\d", "digit"),
]


def validate_secret_complexity(secret: str) -> str:
    """Validate that a secret meets complexity requirements.

    Args:
        secret: The secret to validate

    Returns:
        The validated secret

    Raises:
        ValueError: If the secret doesn't meet requirements
    """
    missing = [
        name for pattern, name in SECRET_COMPLEXITY_RULES if not re.search(pattern, secret)
    ]

    if missing:
        if len(missing) == 1:
            raise ValueError(f"Password must contain at least one {missing[0]}")
        raise ValueError(f"Password must contain at least one: {', '.join(missing)}")

    return secret


# ============================================================
# Token Schemas
# ============================================================


class TokenClaims(BaseModel):
    """Verified contents of an access token.

    Attributes:
        user_id: The user's UUID (``sub`` claim)
        tenant_id: The tenant's UUID
        tier: The user's account tier at issuance
        email: The user's email
        name: The user's display name
        exp: Expiration time
        iat: Issue time
        jti: Unique token id
    """

    user_id: UUID
    tenant_id: UUID
    tier: AccountTier
    email: str
    name: str
    exp: datetime
    iat: datetime
    jti: str


class TokenPair(CamelModel):
    """A pair of access and refresh tokens.

    Attributes:
        access_token: Short-lived JWT for API access
        refresh_token: Long-lived single-use token for getting new access tokens
        token_type: Always "bearer"
        expires_in: Access token expiration in seconds
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


# ============================================================
# Request / Response Schemas
# ============================================================


class RegisterRequest(CamelModel):
    """Schema for organization registration.

    Creates the tenant, its namespace and its first (managerial) user.
    """

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    email: EmailAddress
    secret: str = Field(..., min_length=MIN_SECRET_LENGTH, max_length=MAX_SECRET_LENGTH)
    organization_name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    license_number: str = Field(..., min_length=1, max_length=MAX_LICENSE_NUMBER_LENGTH)

    @field_validator("secret")
    @classmethod
    def secret_complexity(cls, v: str) -> str:
        """Validate secret complexity."""
        return validate_secret_complexity(v)


class LoginRequest(CamelModel):
    """Schema for email/secret login.

    ``tenant_id`` is only needed when the email belongs to several tenants.
    """

    email: EmailAddress
    secret: str = Field(..., min_length=1, max_length=MAX_SECRET_LENGTH)
    tenant_id: UUID | None = None


class RefreshRequest(CamelModel):
    """Schema for refreshing or revoking a refresh token."""

    refresh_token: str = Field(..., min_length=1)


class TokensResponse(CamelModel):
    """Schema for the refresh endpoint."""

    tokens: TokenPair


class MeResponse(CamelModel):
    """Identity of the authenticated caller."""

    user_id: UUID
    tenant_id: UUID
    tier: AccountTier
    email: str
    name: str
