"""Authentication backend for JWT and credential handling.

This module provides core authentication utilities including:
- Secret hashing with bcrypt
- Access token (JWT) creation and verification
- Opaque refresh token generation and keyed hashing for storage
"""

import hashlib
import hmac
import secrets
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from lawdesk.config import settings
from lawdesk.core.auth.schemas import TokenClaims
from lawdesk.core.constants import (
    ACCESS_TOKEN_JTI_LENGTH,
    BCRYPT_ROUNDS,
    REFRESH_TOKEN_BYTES,
    REFRESH_TOKEN_SEPARATOR,
)
from lawdesk.core.errors import TokenExpiredError, TokenInvalidError
from lawdesk.core.permissions.tiers import AccountTier


# Secret hashing context using bcrypt
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


# ============================================================
# Credential Utilities
# ============================================================


def hash_credential(secret: str) -> str:
    """Hash a secret using bcrypt.

    Args:
        secret: Plain text secret

    Returns:
        Salted bcrypt hash of the secret
    """
    return pwd_context.hash(secret)


def verify_credential(secret: str, hashed: str) -> bool:
    """Verify a secret against its hash.

    Args:
        secret: Plain text secret to verify
        hashed: Bcrypt hash to verify against

    Returns:
        True if the secret matches, False otherwise
    """
    try:
        return pwd_context.verify(secret, hashed)
    except ValueError:
        # Unrecognized or malformed hash
        return False


@lru_cache
def _dummy_hash() -> str:
    return pwd_context.hash(secrets.token_urlsafe(16))


def burn_credential_check(secret: str) -> None:
    """Spend the time of a real verification when no account matched.

    Keeps unknown-email and wrong-secret logins indistinguishable by timing.
    """
    pwd_context.verify(secret, _dummy_hash())


# ============================================================
# Access Token Utilities
# ============================================================


def create_access_token(
    user_id: UUID,
    tenant_id: UUID,
    tier: AccountTier | str,
    email: str,
    name: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a short-lived JWT access token.

    Args:
        user_id: The user's UUID
        tenant_id: The tenant's UUID
        tier: The user's account tier
        email: The user's email
        name: The user's display name
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT access token
    """
    now = datetime.now(UTC)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)

    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "tenant_id": str(tenant_id),
        "tier": AccountTier(tier).value,
        "email": email,
        "name": name,
        "exp": now + expires_delta,
        "iat": now,
        "jti": secrets.token_urlsafe(ACCESS_TOKEN_JTI_LENGTH),  # Unique token ID
        "type": "access",
    }

    return jwt.encode(
        to_encode,
        settings.access_token_secret,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> TokenClaims:
    """Verify an access token's signature and lifetime.

    Args:
        token: The encoded JWT

    Returns:
        The verified claims

    Raises:
        TokenExpiredError: If the token was valid but has expired
        TokenInvalidError: If the token is malformed, forged or not an access token
    """
    try:
        payload = jwt.decode(
            token,
            settings.access_token_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError as e:
        raise TokenExpiredError() from e
    except JWTError as e:
        raise TokenInvalidError() from e

    if payload.get("type") != "access":
        raise TokenInvalidError("Invalid token type")

    try:
        return TokenClaims(
            user_id=UUID(payload["sub"]),
            tenant_id=UUID(payload["tenant_id"]),
            tier=AccountTier(payload["tier"]),
            email=payload["email"],
            name=payload["name"],
            exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
            iat=datetime.fromtimestamp(payload["iat"], tz=UTC),
            jti=payload["jti"],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise TokenInvalidError("Malformed token claims") from e


# ============================================================
# Refresh Token Utilities
# ============================================================


def generate_refresh_token(tenant_id: UUID) -> str:
    """Create an opaque refresh token.

    The token is ``<tenant hex>.<random>``. The tenant part lets the token be
    looked up directly in its tenant's namespace; the random part carries
    all of the entropy.

    Args:
        tenant_id: The tenant's UUID

    Returns:
        Random refresh token string
    """
    return f"{tenant_id.hex}{REFRESH_TOKEN_SEPARATOR}{secrets.token_urlsafe(REFRESH_TOKEN_BYTES)}"


def parse_refresh_token(token: str) -> UUID:
    """Extract the tenant id from a refresh token.

    Raises:
        TokenInvalidError: If the token is not in the expected shape
    """
    tenant_part, separator, secret_part = token.partition(REFRESH_TOKEN_SEPARATOR)
    if not separator or not secret_part:
        raise TokenInvalidError("Invalid refresh token")
    try:
        return UUID(hex=tenant_part)
    except ValueError as e:
        raise TokenInvalidError("Invalid refresh token") from e


def hash_token(token: str) -> str:
    """Hash a refresh token for storage.

    Uses HMAC-SHA256 keyed with the refresh secret, so a leaked table of
    hashes cannot be checked against guessed tokens without the key.

    Args:
        token: The token to hash

    Returns:
        Hex digest of the keyed hash
    """
    return hmac.new(
        settings.refresh_token_secret.encode(),
        token.encode(),
        hashlib.sha256,
    ).hexdigest()


def get_token_expiration(days: int | None = None) -> datetime:
    """Get the expiration datetime for a refresh token.

    Args:
        days: Number of days until expiration

    Returns:
        Expiration datetime
    """
    if days is None:
        days = settings.refresh_token_expire_days
    return datetime.now(UTC) + timedelta(days=days)
