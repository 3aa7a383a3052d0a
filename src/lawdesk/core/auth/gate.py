"""Per-request access gate.

Takes a request from unauthenticated to authorized:

    Unauthenticated --(valid access token)--> Authenticated
        --(tier check)--> Authorized --(bind)--> handler runs with a ScopedHandle

Any step may reject: 401 for identity problems, 403 for insufficient tier.
"""

from collections.abc import Iterable

import structlog
from fastapi import Request

from lawdesk.core.audit.context import set_audit_context
from lawdesk.core.auth.backend import decode_access_token
from lawdesk.core.auth.schemas import TokenClaims
from lawdesk.core.errors import AuthenticationError, AuthorizationError, TenantInactiveError
from lawdesk.core.permissions.tiers import AccountTier
from lawdesk.core.tenancy.registry import TenantRegistry
from lawdesk.core.tenancy.router import ScopedHandle, TenantConnectionRouter


logger = structlog.get_logger()


def client_info(request: Request) -> tuple[str | None, str | None]:
    """Extract (user agent, client IP) from a request."""
    user_agent = request.headers.get("User-Agent")
    # Get IP from X-Forwarded-For or client host
    ip_address: str | None = None
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    elif request.client:
        ip_address = request.client.host
    return user_agent, ip_address


class AccessGate:
    """Authenticates callers, checks tiers and binds tenant handles."""

    def __init__(self, registry: TenantRegistry, router: TenantConnectionRouter) -> None:
        self.registry = registry
        self.router = router

    def authenticate(self, token: str | None) -> TokenClaims:
        """Verify a bearer access token.

        Args:
            token: The raw bearer token, None when the header is absent

        Returns:
            The verified claims

        Raises:
            AuthenticationError: If no token was presented
            TokenExpiredError: If the token has expired
            TokenInvalidError: If the token is malformed or forged
        """
        if not token:
            raise AuthenticationError("Missing authentication token", error_code="MISSING_TOKEN")
        return decode_access_token(token)

    def authorize(self, claims: TokenClaims, required: Iterable[AccountTier]) -> None:
        """Check the caller's tier against the tiers a route accepts.

        Raises:
            AuthorizationError: If the caller's tier is not accepted
        """
        required = list(required)
        if claims.tier in required:
            return

        logger.info(
            "access_denied",
            user_id=str(claims.user_id),
            required=[tier.value for tier in required],
            current=claims.tier.value,
        )
        raise AuthorizationError(
            required=[tier.value for tier in required],
            current=claims.tier.value,
        )

    async def bind(self, request: Request, claims: TokenClaims) -> ScopedHandle:
        """Bind the caller's tenant handle into the request context.

        Checks the tenant is still active, stores the handle on
        ``request.state.tenant`` and sets the audit and log context for the
        rest of the request.

        Raises:
            TenantInactiveError: If the tenant is missing or deactivated
        """
        tenant = await self.registry.find_by_id(claims.tenant_id)
        if tenant is None or not tenant.is_active:
            raise TenantInactiveError()

        handle = self.router.resolve(claims.tenant_id)
        request.state.tenant = handle
        request.state.claims = claims
        request.state.tenant_id = claims.tenant_id
        request.state.user_id = claims.user_id

        user_agent, ip_address = client_info(request)
        set_audit_context(
            user_id=claims.user_id,
            ip_address=ip_address,
            user_agent=user_agent,
            request_id=getattr(request.state, "request_id", None),
        )
        structlog.contextvars.bind_contextvars(
            tenant_id=str(claims.tenant_id),
            user_id=str(claims.user_id),
        )
        return handle
