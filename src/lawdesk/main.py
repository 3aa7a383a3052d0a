"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lawdesk.api.router import api_router
from lawdesk.config import Settings, settings
from lawdesk.core.auth.gate import AccessGate
from lawdesk.core.database.store import DataStore
from lawdesk.core.errors import register_exception_handlers
from lawdesk.core.logging import RequestIdMiddleware, RequestLoggingMiddleware
from lawdesk.core.tenancy.provisioner import SchemaProvisioner
from lawdesk.core.tenancy.registry import TenantRegistry
from lawdesk.core.tenancy.router import TenantConnectionRouter


# Configure structlog
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        (
            structlog.processors.JSONRenderer()
            if settings.is_production
            else structlog.dev.ConsoleRenderer()
        ),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.log_level.upper(), logging.INFO)
    ),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Handles startup and shutdown events.
    """
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        environment=settings.environment,
    )

    yield

    logger.info("application_shutdown")
    await app.state.store.dispose()


def create_app(app_settings: Settings | None = None, store: DataStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The data store and the components built on it are created once here and
    shared through ``app.state``; nothing reaches the database through a
    module-level global.

    Args:
        app_settings: Settings to use, the environment's by default
        store: Data store to use, one built from settings by default

    Returns:
        Configured FastAPI application instance.
    """
    app_settings = app_settings or settings

    app = FastAPI(
        title=app_settings.app_name,
        description="Multi-tenant platform core: tenancy, authentication and audit",
        version="0.1.0",
        debug=app_settings.debug,
        lifespan=lifespan,
        # Disable docs in production
        docs_url="/docs" if not app_settings.is_production else None,
        redoc_url="/redoc" if not app_settings.is_production else None,
        openapi_url="/openapi.json" if not app_settings.is_production else None,
    )

    store = store or DataStore.from_settings(app_settings)
    registry = TenantRegistry(store)
    router = TenantConnectionRouter(store)

    app.state.store = store
    app.state.registry = registry
    app.state.provisioner = SchemaProvisioner(store, registry)
    app.state.router = router
    app.state.gate = AccessGate(registry, router)

    cors_origins = app_settings.cors_origins
    if app_settings.is_development and not cors_origins:
        cors_origins = ["http://localhost:3000", "http://localhost:5173"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Add request ID middleware (added last, runs first)
    app.add_middleware(RequestIdMiddleware)

    # Register exception handlers for RFC 7807 error responses
    register_exception_handlers(app)

    app.include_router(api_router)

    return app
