"""ARQ worker configuration.

Defines the worker settings including registered jobs,
cron schedules, and startup/shutdown hooks.
"""

from typing import Any, ClassVar

import structlog
from arq import cron
from arq.connections import RedisSettings

from lawdesk.config import settings
from lawdesk.core.database.store import DataStore
from lawdesk.core.jobs.tasks.cleanup import cleanup_expired_refresh_tokens
from lawdesk.core.tenancy.registry import TenantRegistry
from lawdesk.core.tenancy.router import TenantConnectionRouter


def get_redis_settings() -> RedisSettings:
    """Build ARQ Redis settings from the configured Redis URL."""
    return RedisSettings.from_dsn(str(settings.redis_url))


async def startup(ctx: dict[str, Any]) -> None:
    """Initialize resources for the worker.

    Called once when the worker starts. Builds the data store and the
    tenancy components jobs need.

    Args:
        ctx: Worker context dict (shared across all jobs)
    """
    log = structlog.get_logger()
    log.info("worker_startup", environment=settings.environment)

    store = DataStore.from_settings(settings)
    ctx["store"] = store
    ctx["registry"] = TenantRegistry(store)
    ctx["router"] = TenantConnectionRouter(store)

    log.info("worker_startup_complete")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Cleanup resources when the worker stops.

    Args:
        ctx: Worker context dict
    """
    log = structlog.get_logger()
    log.info("worker_shutdown")

    store: DataStore | None = ctx.get("store")
    if store:
        await store.dispose()

    log.info("worker_shutdown_complete")


class WorkerSettings:
    """ARQ worker settings.

    Run the worker with:
        arq lawdesk.core.jobs.worker.WorkerSettings
    """

    # Registered job functions
    functions: ClassVar[list[Any]] = [
        cleanup_expired_refresh_tokens,
    ]

    # Cron jobs (scheduled tasks)
    cron_jobs: ClassVar[list[Any]] = [
        # Clean up expired refresh tokens daily at 3 AM
        cron(cleanup_expired_refresh_tokens, hour=3, minute=0),
    ]

    # Worker lifecycle hooks
    on_startup = startup
    on_shutdown = shutdown

    # Redis connection
    redis_settings = get_redis_settings()

    # Worker configuration
    max_jobs = 10  # Maximum concurrent jobs
    job_timeout = 300  # 5 minutes per job
    keep_result = 3600  # Keep results for 1 hour
    retry_jobs = True  # Retry failed jobs
    max_tries = 3  # Maximum retry attempts
