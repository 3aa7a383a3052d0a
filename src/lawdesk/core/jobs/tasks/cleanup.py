"""Cleanup tasks for expired data.

Refresh tokens live inside each tenant's namespace, so cleanup walks the
active tenants and deletes expired tokens through each tenant's handle.
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError

from lawdesk.core.tenancy.registry import TenantRegistry
from lawdesk.core.tenancy.router import TenantConnectionRouter
from lawdesk.modules.users.repos import RefreshTokenRepository


log = structlog.get_logger()


async def cleanup_expired_refresh_tokens(ctx: dict[str, Any]) -> dict[str, int]:
    """Delete expired refresh tokens in every active tenant.

    A tenant whose cleanup fails is logged and skipped; the others are still
    cleaned.

    Args:
        ctx: Worker context holding the registry and router

    Returns:
        Dict with the number of tokens deleted and tenants processed/failed
    """
    registry: TenantRegistry = ctx["registry"]
    router: TenantConnectionRouter = ctx["router"]
    now = datetime.now(UTC)

    deleted = 0
    failed = 0
    tenants = await registry.list_active()

    for tenant in tenants:
        handle = router.resolve(tenant.id)
        try:
            async with handle.session() as session:
                deleted += await RefreshTokenRepository(session).cleanup_expired(now)
        except SQLAlchemyError as e:
            failed += 1
            log.error(
                "cleanup_tenant_failed",
                tenant_id=str(tenant.id),
                error_type=type(e).__name__,
            )

    log.info(
        "cleanup_expired_refresh_tokens_complete",
        refresh_tokens_deleted=deleted,
        tenants_processed=len(tenants),
        tenants_failed=failed,
    )

    return {
        "refresh_tokens_deleted": deleted,
        "tenants_processed": len(tenants),
        "tenants_failed": failed,
    }
