"""Authentication API routes.

Provides endpoints for:
- Organization registration
- Login/logout
- Token refresh
"""

from fastapi import APIRouter, Request, status

from lawdesk.core.audit.context import set_audit_context
from lawdesk.core.auth.dependencies import CurrentClaims
from lawdesk.core.auth.gate import client_info
from lawdesk.core.auth.schemas import (
    LoginRequest,
    MeResponse,
    RefreshRequest,
    RegisterRequest,
    TokensResponse,
)
from lawdesk.core.auth.service import AuthSvc
from lawdesk.core.schemas import MessageResponse
from lawdesk.core.tenancy.schemas import TenantResponse
from lawdesk.modules.users.schemas import AuthResponse, UserResponse


router = APIRouter(prefix="/auth", tags=["auth"])


def _bind_anonymous_context(request: Request) -> tuple[str | None, str | None]:
    """Record request details for audit before the caller is known."""
    user_agent, ip_address = client_info(request)
    set_audit_context(
        ip_address=ip_address,
        user_agent=user_agent,
        request_id=getattr(request.state, "request_id", None),
    )
    return user_agent, ip_address


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new organization",
    description=(
        "Creates a tenant, provisions its isolated namespace and creates the first "
        "user with the managerial tier."
    ),
)
async def register(
    data: RegisterRequest,
    service: AuthSvc,
    request: Request,
) -> AuthResponse:
    """Register a new organization and its first user."""
    user_agent, ip_address = _bind_anonymous_context(request)

    user, tenant, tokens = await service.register(
        name=data.name,
        email=data.email,
        secret=data.secret,
        organization_name=data.organization_name,
        license_number=data.license_number,
        user_agent=user_agent,
        ip_address=ip_address,
    )

    return AuthResponse(
        user=UserResponse.model_validate(user),
        tenant=TenantResponse.model_validate(tenant),
        tokens=tokens,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login with email and secret",
    description=(
        "Authenticate to receive access and refresh tokens. "
        "tenantId is required only when the email belongs to several organizations."
    ),
)
async def login(
    data: LoginRequest,
    service: AuthSvc,
    request: Request,
) -> AuthResponse:
    """Login with email and secret."""
    user_agent, ip_address = _bind_anonymous_context(request)

    user, tenant, tokens = await service.login(
        email=data.email,
        secret=data.secret,
        tenant_id=data.tenant_id,
        user_agent=user_agent,
        ip_address=ip_address,
    )

    return AuthResponse(
        user=UserResponse.model_validate(user),
        tenant=TenantResponse.model_validate(tenant),
        tokens=tokens,
    )


@router.post(
    "/refresh",
    response_model=TokensResponse,
    summary="Refresh access token",
    description=(
        "Exchange a refresh token for a new token pair. The presented token is "
        "single-use; presenting it again revokes every session of the user."
    ),
)
async def refresh_token(
    data: RefreshRequest,
    service: AuthSvc,
    request: Request,
) -> TokensResponse:
    """Rotate a refresh token."""
    user_agent, ip_address = _bind_anonymous_context(request)

    tokens = await service.rotate_refresh(
        refresh_token=data.refresh_token,
        user_agent=user_agent,
        ip_address=ip_address,
    )

    return TokensResponse(tokens=tokens)


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
    description="Revoke the refresh token of the current session. Idempotent.",
)
async def logout(
    data: RefreshRequest,
    claims: CurrentClaims,
    service: AuthSvc,
) -> MessageResponse:
    """Logout by revoking the refresh token."""
    await service.logout(data.refresh_token, claims)
    return MessageResponse(message="Logged out")


@router.post(
    "/logout-all",
    response_model=MessageResponse,
    summary="Logout from all devices",
    description="Revoke every refresh token of the current user.",
)
async def logout_all(
    claims: CurrentClaims,
    service: AuthSvc,
) -> MessageResponse:
    """Logout from all devices."""
    await service.revoke_all_for_user(claims.user_id, claims.tenant_id)
    return MessageResponse(message="Logged out from all devices")


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current identity",
    description="Returns the identity carried by the caller's access token.",
)
async def get_me(claims: CurrentClaims) -> MeResponse:
    """Get the caller's identity."""
    return MeResponse(
        user_id=claims.user_id,
        tenant_id=claims.tenant_id,
        tier=claims.tier,
        email=claims.email,
        name=claims.name,
    )
