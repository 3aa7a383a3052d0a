"""FastAPI dependencies for authentication and tier gating.

This module exposes the access gate to routes:
- ``CurrentClaims``: the verified identity of the caller
- ``TenantHandle``: the caller's tenant handle, bound by the gate
- ``require_tiers`` / ``require_min_tier``: account tier checks
"""

from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lawdesk.core.auth.gate import AccessGate
from lawdesk.core.auth.schemas import TokenClaims
from lawdesk.core.permissions.tiers import AccountTier
from lawdesk.core.tenancy.router import ScopedHandle


# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)


def get_gate(request: Request) -> AccessGate:
    return request.app.state.gate


async def get_current_claims(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    gate: Annotated[AccessGate, Depends(get_gate)],
) -> TokenClaims:
    """Verify the bearer token of the request.

    Args:
        credentials: Bearer token credentials from the request
        gate: The application's access gate

    Returns:
        The verified claims

    Raises:
        AuthenticationError: If the token is missing
        TokenExpiredError: If the token has expired
        TokenInvalidError: If the token is invalid
    """
    return gate.authenticate(credentials.credentials if credentials else None)


CurrentClaims = Annotated[TokenClaims, Depends(get_current_claims)]


async def get_tenant_handle(
    request: Request,
    claims: CurrentClaims,
    gate: Annotated[AccessGate, Depends(get_gate)],
) -> ScopedHandle:
    """Bind and return the caller's tenant handle.

    Raises:
        TenantInactiveError: If the caller's tenant was deactivated
    """
    return await gate.bind(request, claims)


TenantHandle = Annotated[ScopedHandle, Depends(get_tenant_handle)]


def require_tiers(*tiers: AccountTier) -> Callable[..., Awaitable[TokenClaims]]:
    """Create a dependency accepting only callers of the given tiers.

    Usage:
        @router.get("/reports", dependencies=[Depends(require_tiers(AccountTier.MANAGERIAL))])
        async def reports(handle: TenantHandle): ...

    Args:
        tiers: Accepted account tiers

    Returns:
        Dependency function that returns the caller's claims

    Raises:
        AuthorizationError: When called by a caller of another tier
    """

    async def dependency(
        claims: CurrentClaims,
        gate: Annotated[AccessGate, Depends(get_gate)],
    ) -> TokenClaims:
        gate.authorize(claims, tiers)
        return claims

    return dependency


def require_min_tier(tier: AccountTier) -> Callable[..., Awaitable[TokenClaims]]:
    """Create a dependency accepting ``tier`` and every tier above it."""
    return require_tiers(*AccountTier.from_minimum(tier))
