"""End-to-end API tests against PostgreSQL.

Each test drives the application over HTTP the way a client would:
register an organization, log in, call gated routes and renew tokens.
"""

from datetime import timedelta
from typing import Any

import pytest
from httpx import AsyncClient

from lawdesk.core.auth.backend import create_access_token
from lawdesk.core.tenancy.router import TenantConnectionRouter


pytestmark = pytest.mark.integration

REGISTER = {
    "name": "Ana Souza",
    "email": "a@acme.test",
    "secret": "Secret123!",
    "organizationName": "Acme Law",
    "licenseNumber": "OAB-12345",
}


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def founder(db_client: AsyncClient) -> dict[str, Any]:
    """Register Acme Law and return the response body."""
    response = await db_client.post("/api/v1/auth/register", json=REGISTER)
    assert response.status_code == 201
    return response.json()


async def add_user(
    client: AsyncClient, token: str, email: str, tier: str = "basic"
) -> dict[str, Any]:
    response = await client.post(
        "/api/v1/users",
        json={"name": email.split("@")[0], "email": email, "secret": "Secret123!", "accountTier": tier},
        headers=auth(token),
    )
    assert response.status_code == 201, response.text
    return response.json()


async def login(client: AsyncClient, email: str, secret: str = "Secret123!") -> dict[str, Any]:
    response = await client.post("/api/v1/auth/login", json={"email": email, "secret": secret})
    assert response.status_code == 200, response.text
    return response.json()


class TestRegistration:
    """Organization sign-up."""

    async def test_register(self, founder: dict[str, Any]):
        assert founder["user"]["email"] == "a@acme.test"
        assert founder["user"]["accountTier"] == "managerial"
        assert founder["tenant"]["name"] == "Acme Law"
        assert founder["tenant"]["adminEmail"] == "a@acme.test"
        assert founder["tokens"]["tokenType"] == "bearer"
        assert founder["tokens"]["refreshToken"].startswith(
            founder["tenant"]["id"].replace("-", "") + "."
        )

    async def test_register_twice(self, db_client: AsyncClient, founder: dict[str, Any]):
        response = await db_client.post(
            "/api/v1/auth/register", json={**REGISTER, "email": "A@Acme.test"}
        )

        assert response.status_code == 400
        assert response.json()["code"] == "DUPLICATE_ADMIN_EMAIL"

    async def test_login_after_register(self, db_client: AsyncClient, founder: dict[str, Any]):
        body = await login(db_client, "a@acme.test")

        assert body["user"]["id"] == founder["user"]["id"]
        assert body["tenant"]["id"] == founder["tenant"]["id"]

    async def test_unknown_email_and_wrong_secret_look_alike(
        self, db_client: AsyncClient, founder: dict[str, Any]
    ):
        wrong_secret = await db_client.post(
            "/api/v1/auth/login", json={"email": "a@acme.test", "secret": "Secret124!"}
        )
        unknown = await db_client.post(
            "/api/v1/auth/login", json={"email": "nobody@acme.test", "secret": "Secret123!"}
        )

        assert wrong_secret.status_code == unknown.status_code == 401
        assert wrong_secret.json()["code"] == unknown.json()["code"] == "INVALID_CREDENTIALS"
        assert wrong_secret.json()["detail"] == unknown.json()["detail"]


class TestTokenRenewal:
    """Expired access tokens are renewed with the refresh token."""

    async def test_expired_access_then_refresh(
        self, db_client: AsyncClient, founder: dict[str, Any]
    ):
        """An expired access token should fail with TOKEN_EXPIRED until renewed."""
        expired = create_access_token(
            user_id=founder["user"]["id"],
            tenant_id=founder["tenant"]["id"],
            tier="managerial",
            email="a@acme.test",
            name="Ana Souza",
            expires_delta=timedelta(seconds=-1),
        )

        response = await db_client.get("/api/v1/auth/me", headers=auth(expired))
        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_EXPIRED"

        response = await db_client.post(
            "/api/v1/auth/refresh",
            json={"refreshToken": founder["tokens"]["refreshToken"]},
        )
        assert response.status_code == 200
        renewed = response.json()["tokens"]
        assert renewed["accessToken"] != founder["tokens"]["accessToken"]
        assert renewed["refreshToken"] != founder["tokens"]["refreshToken"]

        response = await db_client.get("/api/v1/auth/me", headers=auth(renewed["accessToken"]))
        assert response.status_code == 200
        assert response.json()["userId"] == founder["user"]["id"]

    async def test_replayed_refresh_token(self, db_client: AsyncClient, founder: dict[str, Any]):
        token = {"refreshToken": founder["tokens"]["refreshToken"]}

        first = await db_client.post("/api/v1/auth/refresh", json=token)
        second = await db_client.post("/api/v1/auth/refresh", json=token)

        assert first.status_code == 200
        assert second.status_code == 401
        assert second.json()["code"] == "TOKEN_REUSED"

    async def test_logout(self, db_client: AsyncClient, founder: dict[str, Any]):
        token = {"refreshToken": founder["tokens"]["refreshToken"]}

        response = await db_client.post(
            "/api/v1/auth/logout", json=token, headers=auth(founder["tokens"]["accessToken"])
        )
        assert response.status_code == 200

        response = await db_client.post("/api/v1/auth/refresh", json=token)
        assert response.status_code == 401
        assert response.json()["code"] == "TOKEN_INVALID"


class TestUserManagement:
    """Managerial users add colleagues within the plan limit."""

    async def test_duplicate_email(self, db_client: AsyncClient, founder: dict[str, Any]):
        token = founder["tokens"]["accessToken"]
        await add_user(db_client, token, "b@acme.test")

        response = await db_client.post(
            "/api/v1/users",
            json={"name": "Bea", "email": "B@acme.test", "secret": "Secret123!"},
            headers=auth(token),
        )

        assert response.status_code == 409
        assert response.json()["code"] == "EMAIL_EXISTS"

    async def test_plan_limit(self, db_client: AsyncClient, founder: dict[str, Any]):
        """The basic plan should stop at five users, founder included."""
        token = founder["tokens"]["accessToken"]
        for n in range(4):
            await add_user(db_client, token, f"user{n}@acme.test")

        response = await db_client.post(
            "/api/v1/users",
            json={"name": "One Too Many", "email": "extra@acme.test", "secret": "Secret123!"},
            headers=auth(token),
        )

        assert response.status_code == 403
        assert response.json()["code"] == "PLAN_LIMIT_REACHED"

        listing = await db_client.get("/api/v1/users", headers=auth(token))
        assert listing.json()["total"] == 5

    async def test_new_user_can_log_in(self, db_client: AsyncClient, founder: dict[str, Any]):
        created = await add_user(
            db_client, founder["tokens"]["accessToken"], "c@acme.test", tier="intermediate"
        )

        body = await login(db_client, "c@acme.test")

        assert body["user"]["id"] == created["id"]
        assert body["user"]["accountTier"] == "intermediate"
        assert body["tenant"]["id"] == founder["tenant"]["id"]


class TestGatedModules:
    """Tier gating and audit attribution through the full stack."""

    async def test_basic_user_is_refused(self, db_client: AsyncClient, founder: dict[str, Any]):
        await add_user(db_client, founder["tokens"]["accessToken"], "basic@acme.test")
        token = (await login(db_client, "basic@acme.test"))["tokens"]["accessToken"]

        response = await db_client.get("/api/v1/cash-flow/transactions", headers=auth(token))

        assert response.status_code == 403
        assert response.json()["required"] == ["intermediate", "managerial"]
        assert response.json()["current"] == "basic"

    async def test_writes_are_attributed(
        self,
        db_client: AsyncClient,
        tenant_router: TenantConnectionRouter,
        founder: dict[str, Any],
    ):
        """A transaction created over HTTP should be audited under its creator."""
        clerk = await add_user(
            db_client, founder["tokens"]["accessToken"], "clerk@acme.test", tier="intermediate"
        )
        token = (await login(db_client, "clerk@acme.test"))["tokens"]["accessToken"]

        response = await db_client.post(
            "/api/v1/cash-flow/transactions",
            json={
                "type": "income",
                "amount": "1500.00",
                "categoryId": "fees",
                "description": "Retainer",
                "date": "2026-10-01",
            },
            headers={**auth(token), "User-Agent": "lawdesk-tests"},
        )
        assert response.status_code == 201
        entry = response.json()
        assert entry["createdBy"] == "clerk"

        handle = tenant_router.resolve(founder["tenant"]["id"])
        (row,) = await handle.read("audit_log", filters={"record_id": entry["id"]})
        assert row.operation == "CREATE"
        assert str(row.user_id) == clerk["id"]
        assert row.user_agent == "lawdesk-tests"
        assert row.request_id is not None

    async def test_tenants_do_not_see_each_other(
        self, db_client: AsyncClient, founder: dict[str, Any]
    ):
        other = await db_client.post(
            "/api/v1/auth/register",
            json={**REGISTER, "email": "z@zeta.test", "organizationName": "Zeta Law"},
        )
        assert other.status_code == 201

        await db_client.post(
            "/api/v1/cash-flow/transactions",
            json={
                "type": "expense",
                "amount": "80.00",
                "categoryId": "rent",
                "description": "Office",
                "date": "2026-10-02",
            },
            headers=auth(founder["tokens"]["accessToken"]),
        )

        response = await db_client.get(
            "/api/v1/cash-flow/transactions",
            headers=auth(other.json()["tokens"]["accessToken"]),
        )
        assert response.status_code == 200
        assert response.json() == []

        users = await db_client.get(
            "/api/v1/users", headers=auth(other.json()["tokens"]["accessToken"])
        )
        assert [u["email"] for u in users.json()["items"]] == ["z@zeta.test"]
