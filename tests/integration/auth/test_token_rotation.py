"""Integration tests for login and refresh token rotation."""

import asyncio

import pytest

from lawdesk.core.auth.schemas import TokenPair
from lawdesk.core.auth.service import AuthService
from lawdesk.core.errors import (
    AuthenticationError,
    TenantInactiveError,
    TokenInvalidError,
    TokenReuseError,
)
from lawdesk.core.tenancy.registry import TenantRegistry
from lawdesk.core.tenancy.router import TenantConnectionRouter
from lawdesk.modules.users.models import RefreshToken


pytestmark = pytest.mark.integration


class TestLogin:
    """Tests for login against a provisioned tenant."""

    async def test_login(self, auth_service: AuthService, make_organization):
        user, tenant, _ = await make_organization(email="a@acme.test", secret="Secret123!")

        logged_in, found_tenant, tokens = await auth_service.login("A@Acme.test", "Secret123!")

        assert logged_in.id == user.id
        assert found_tenant.id == tenant.id
        assert logged_in.last_login is not None
        assert auth_service.verify_access(tokens.access_token).tenant_id == tenant.id

    async def test_wrong_secret(self, auth_service: AuthService, make_organization):
        await make_organization(email="a@acme.test", secret="Secret123!")

        with pytest.raises(AuthenticationError) as exc_info:
            await auth_service.login("a@acme.test", "Secret124!")

        assert exc_info.value.error_code == "INVALID_CREDENTIALS"

    async def test_inactive_tenant(
        self, auth_service: AuthService, registry: TenantRegistry, make_organization
    ):
        _, tenant, _ = await make_organization(email="a@acme.test", secret="Secret123!")
        await registry.set_active(tenant.id, False)

        with pytest.raises(TenantInactiveError):
            await auth_service.login("a@acme.test", "Secret123!")


class TestRefreshRotation:
    """A refresh token can be exchanged exactly once."""

    async def test_rotation(self, auth_service: AuthService, make_organization):
        _, _, tokens = await make_organization()

        rotated = await auth_service.rotate_refresh(tokens.refresh_token)

        assert rotated.refresh_token != tokens.refresh_token
        assert rotated.access_token != tokens.access_token

    async def test_reuse_revokes_every_session(
        self,
        auth_service: AuthService,
        tenant_router: TenantConnectionRouter,
        make_organization,
    ):
        """Replaying a rotated token should fail and revoke its successor too."""
        user, tenant, tokens = await make_organization()
        rotated = await auth_service.rotate_refresh(tokens.refresh_token)

        with pytest.raises(TokenReuseError):
            await auth_service.rotate_refresh(tokens.refresh_token)

        with pytest.raises(TokenInvalidError):
            await auth_service.rotate_refresh(rotated.refresh_token)

        stored = await tenant_router.resolve(tenant.id).read(
            RefreshToken, filters={"user_id": user.id}
        )
        assert len(stored) == 2
        assert not any(token.is_active for token in stored)
        assert {token.revoked_reason for token in stored} == {"rotated", "reuse_detected"}

    async def test_concurrent_rotation_has_one_winner(
        self, auth_service: AuthService, make_organization
    ):
        """Of several simultaneous rotations of one token exactly one succeeds."""
        _, _, tokens = await make_organization()

        results = await asyncio.gather(
            *(auth_service.rotate_refresh(tokens.refresh_token) for _ in range(5)),
            return_exceptions=True,
        )

        winners = [r for r in results if isinstance(r, TokenPair)]
        losers = [r for r in results if not isinstance(r, TokenPair)]
        assert len(winners) == 1
        assert len(losers) == 4
        assert all(isinstance(e, TokenReuseError) for e in losers)

    async def test_logout_revokes(self, auth_service: AuthService, make_organization):
        _, _, tokens = await make_organization()
        claims = auth_service.verify_access(tokens.access_token)

        await auth_service.logout(tokens.refresh_token, claims)
        await auth_service.logout(tokens.refresh_token, claims)

        with pytest.raises(TokenInvalidError):
            await auth_service.rotate_refresh(tokens.refresh_token)

    async def test_logout_all(self, auth_service: AuthService, make_organization):
        user, tenant, tokens = await make_organization(secret="Secret123!")
        _, _, second = await auth_service.login(user.email, "Secret123!")

        revoked = await auth_service.revoke_all_for_user(user.id, tenant.id)

        assert revoked == 2
        for refresh_token in (tokens.refresh_token, second.refresh_token):
            with pytest.raises(TokenInvalidError):
                await auth_service.rotate_refresh(refresh_token)
