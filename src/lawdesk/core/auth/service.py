"""Authentication service for registration, login and token management."""

from typing import Annotated
from uuid import UUID, uuid4

import structlog
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lawdesk.api.dependencies import Provisioner, Registry, Router
from lawdesk.config import settings
from lawdesk.core.auth import backend
from lawdesk.core.auth.schemas import TokenClaims, TokenPair
from lawdesk.core.errors import (
    AuthenticationError,
    TenantInactiveError,
    TokenExpiredError,
    TokenInvalidError,
    TokenReuseError,
    ValidationError,
)
from lawdesk.core.permissions.tiers import AccountTier
from lawdesk.core.tenancy.models import Tenant
from lawdesk.core.tenancy.registry import normalize_email
from lawdesk.modules.users.models import RefreshToken, User
from lawdesk.modules.users.repos import RefreshTokenRepository, UserRepository


logger = structlog.get_logger()


class AuthService:
    """Service for authentication operations.

    Handles organization registration, login, access token verification,
    refresh token rotation and logout.
    """

    def __init__(
        self,
        registry: Registry,
        provisioner: Provisioner,
        router: Router,
    ) -> None:
        self.registry = registry
        self.provisioner = provisioner
        self.router = router

    # ============================================================
    # Credentials
    # ============================================================

    @staticmethod
    def hash_credential(secret: str) -> str:
        """Produce a salted, slow hash of a secret."""
        return backend.hash_credential(secret)

    @staticmethod
    def verify_credential(secret: str, hashed: str) -> bool:
        """Check a secret against a stored hash."""
        return backend.verify_credential(secret, hashed)

    # ============================================================
    # Registration / Login
    # ============================================================

    async def register(
        self,
        name: str,
        email: str,
        secret: str,
        organization_name: str,
        license_number: str | None = None,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> tuple[User, Tenant, TokenPair]:
        """Register a new organization and its first user.

        The registry record, the provisioned namespace, the first user
        (managerial tier), its directory entry and its refresh token are all
        written in one transaction. If any step fails nothing is kept, so a
        tenant never exists without its namespace.

        Args:
            name: Name of the first user
            email: Email of the first user, becomes the tenant admin email
            secret: Plain text secret
            organization_name: Name of the new tenant
            license_number: Professional licence identifier
            user_agent: Client user agent
            ip_address: Client IP address

        Returns:
            Tuple of (user, tenant, token_pair)

        Raises:
            DuplicateAdminEmailError: If the email already administers a tenant
            ProvisioningError: If the namespace could not be created
        """
        email = normalize_email(email)
        tenant_id = uuid4()
        password_hash = backend.hash_credential(secret)
        handle = self.router.resolve(tenant_id)

        try:
            async with handle.session() as session:
                tenant = await self.registry.register(
                    name=organization_name,
                    admin_email=email,
                    license_number=license_number,
                    tenant_id=tenant_id,
                    session=session,
                )
                await self.provisioner.provision(tenant_id, session=session)

                user = await UserRepository(session).create(
                    User(
                        email=email,
                        password_hash=password_hash,
                        name=name.strip(),
                        account_tier=AccountTier.MANAGERIAL.value,
                    )
                )
                await self.registry.add_member(tenant_id, user.id, email, session=session)
                tokens = await self.issue_tokens(user, tenant_id, session, user_agent, ip_address)
        except Exception:
            self.router.discard(tenant_id)
            raise

        logger.info("organization_registered", tenant_id=str(tenant_id), user_id=str(user.id))
        return user, tenant, tokens

    async def login(
        self,
        email: str,
        secret: str,
        tenant_id: UUID | None = None,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> tuple[User, Tenant, TokenPair]:
        """Authenticate a user with email and secret.

        The tenant is taken from ``tenant_id`` when given, otherwise from the
        member directory. Unknown emails and wrong secrets fail identically.

        Args:
            email: User's email address
            secret: Plain text secret
            tenant_id: Tenant to log into, required when the email is
                registered with several tenants
            user_agent: Client user agent
            ip_address: Client IP address

        Returns:
            Tuple of (user, tenant, token_pair)

        Raises:
            AuthenticationError: If credentials are invalid or the account is inactive
            TenantInactiveError: If the tenant has been deactivated
            ValidationError: If the email is ambiguous and no tenant was given
        """
        email = normalize_email(email)

        if tenant_id is None:
            tenant_ids = await self.registry.find_tenant_ids_for_email(email)
            if len(tenant_ids) > 1:
                raise ValidationError(
                    "This email belongs to several organizations; specify tenantId",
                    errors=[{"field": "tenantId", "message": "Required for this email"}],
                )
            tenant_id = tenant_ids[0] if tenant_ids else None

        tenant = await self.registry.find_by_id(tenant_id) if tenant_id else None
        if tenant is None:
            backend.burn_credential_check(secret)
            raise AuthenticationError()

        handle = self.router.resolve(tenant.id)
        async with handle.session() as session:
            users = UserRepository(session)
            user = await users.get_by_email(email)

            if user is None:
                backend.burn_credential_check(secret)
                raise AuthenticationError()

            if not backend.verify_credential(secret, user.password_hash):
                raise AuthenticationError()

            if not user.is_active:
                raise AuthenticationError("Account is deactivated", error_code="ACCOUNT_INACTIVE")

            if not tenant.is_active:
                raise TenantInactiveError()

            await users.touch_last_login(user)
            tokens = await self.issue_tokens(user, tenant.id, session, user_agent, ip_address)

        logger.info("user_logged_in", tenant_id=str(tenant.id), user_id=str(user.id))
        return user, tenant, tokens

    # ============================================================
    # Tokens
    # ============================================================

    async def issue_tokens(
        self,
        user: User,
        tenant_id: UUID,
        session: AsyncSession,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TokenPair:
        """Create a new token pair for a user.

        The refresh token's hash is persisted through ``session``, which must
        belong to the user's tenant namespace.

        Args:
            user: The user to create tokens for
            tenant_id: The user's tenant
            session: A session scoped to the tenant's namespace
            user_agent: Client user agent
            ip_address: Client IP address

        Returns:
            TokenPair with access and refresh tokens
        """
        access_token = backend.create_access_token(
            user_id=user.id,
            tenant_id=tenant_id,
            tier=user.account_tier,
            email=user.email,
            name=user.name,
        )
        refresh_token = backend.generate_refresh_token(tenant_id)

        await RefreshTokenRepository(session).create(
            RefreshToken(
                user_id=user.id,
                token_hash=backend.hash_token(refresh_token),
                expires_at=backend.get_token_expiration(),
                user_agent=user_agent,
                ip_address=ip_address,
            )
        )

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.access_token_expire_minutes * 60,
        )

    @staticmethod
    def verify_access(token: str) -> TokenClaims:
        """Verify an access token without touching storage.

        Raises:
            TokenExpiredError: If the token has expired
            TokenInvalidError: If the token is malformed or forged
        """
        return backend.decode_access_token(token)

    async def rotate_refresh(
        self,
        refresh_token: str,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> TokenPair:
        """Exchange a refresh token for a new token pair.

        The presented token is consumed by a single conditional update, so of
        several concurrent rotations of one token at most one succeeds.
        Presenting an already rotated token is treated as theft: every active
        refresh token of the user is revoked before the error is raised.

        Args:
            refresh_token: The refresh token
            user_agent: Client user agent
            ip_address: Client IP address

        Returns:
            New token pair

        Raises:
            TokenReuseError: If the token was already rotated
            TokenExpiredError: If the token has expired
            TokenInvalidError: If the token is unknown or was revoked
            AuthenticationError: If the user is gone or deactivated
            TenantInactiveError: If the tenant has been deactivated
        """
        tenant_id = backend.parse_refresh_token(refresh_token)
        tenant = await self.registry.find_by_id(tenant_id)
        if tenant is None:
            raise TokenInvalidError("Invalid refresh token")
        if not tenant.is_active:
            raise TenantInactiveError()

        token_hash = backend.hash_token(refresh_token)
        handle = self.router.resolve(tenant_id)
        failure: Exception | None = None

        async with handle.session() as session:
            tokens_repo = RefreshTokenRepository(session)
            user_id = await tokens_repo.consume(token_hash)

            if user_id is None:
                # Classification writes (family revocation) must commit, so the
                # error is raised after the transaction closes.
                failure = await self._classify_failed_rotation(tokens_repo, token_hash, tenant_id)
            else:
                user = await UserRepository(session).get_by_id(user_id)
                if user is None or not user.is_active:
                    raise AuthenticationError("Account is deactivated", error_code="ACCOUNT_INACTIVE")
                tokens = await self.issue_tokens(user, tenant_id, session, user_agent, ip_address)

        if failure is not None:
            raise failure

        logger.info("refresh_token_rotated", tenant_id=str(tenant_id), user_id=str(user_id))
        return tokens

    async def _classify_failed_rotation(
        self,
        tokens_repo: RefreshTokenRepository,
        token_hash: str,
        tenant_id: UUID,
    ) -> Exception:
        stored = await tokens_repo.get_by_hash(token_hash)

        if stored is None:
            return TokenInvalidError("Invalid refresh token")

        if stored.revoked_reason == "rotated":
            revoked = await tokens_repo.revoke_all_for_user(stored.user_id, reason="reuse_detected")
            logger.warning(
                "refresh_token_reuse_detected",
                tenant_id=str(tenant_id),
                user_id=str(stored.user_id),
                revoked_tokens=revoked,
            )
            return TokenReuseError()

        if stored.is_active or stored.revoked_reason == "expired":
            # Active but past its expiry
            await tokens_repo.revoke(token_hash, reason="expired")
            return TokenExpiredError("Refresh token expired", error_code="REFRESH_TOKEN_EXPIRED")

        return TokenInvalidError("Refresh token has been revoked")

    async def logout(self, refresh_token: str, claims: TokenClaims) -> None:
        """Revoke a refresh token of the caller. Idempotent.

        Tokens that are malformed, already revoked, or owned by someone else
        are ignored.

        Args:
            refresh_token: The refresh token to revoke
            claims: The authenticated caller
        """
        try:
            tenant_id = backend.parse_refresh_token(refresh_token)
        except TokenInvalidError:
            return

        if tenant_id != claims.tenant_id:
            return

        handle = self.router.resolve(tenant_id)
        async with handle.session() as session:
            revoked = await RefreshTokenRepository(session).revoke(
                backend.hash_token(refresh_token),
                reason="logout",
                user_id=claims.user_id,
            )

        if revoked:
            logger.info("user_logged_out", tenant_id=str(tenant_id), user_id=str(claims.user_id))

    async def revoke_all_for_user(
        self, user_id: UUID, tenant_id: UUID, reason: str = "logout"
    ) -> int:
        """Revoke every active refresh token of a user.

        Args:
            user_id: The user's UUID
            tenant_id: The user's tenant
            reason: Recorded revocation reason

        Returns:
            Number of tokens revoked
        """
        handle = self.router.resolve(tenant_id)
        async with handle.session() as session:
            return await RefreshTokenRepository(session).revoke_all_for_user(user_id, reason=reason)


# Type alias for dependency injection
AuthSvc = Annotated[AuthService, Depends(AuthService)]
