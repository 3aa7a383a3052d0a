"""Async data store: the process-wide engine and its connection pool.

A ``DataStore`` is created once at startup and passed to every component
that needs storage. Nothing reaches it through module globals.
"""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import event, text
from sqlalchemy.exc import DisconnectionError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from lawdesk.config import Settings


logger = structlog.get_logger()


def install_slow_query_logging(engine: AsyncEngine, threshold_ms: int) -> None:
    """Warn about statements slower than ``threshold_ms``.

    Only the statement text is logged, never its parameters.
    """

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _start_timer(conn, cursor, statement, parameters, context, executemany):  # type: ignore[no-untyped-def]
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def _check_duration(conn, cursor, statement, parameters, context, executemany):  # type: ignore[no-untyped-def]
        started = conn.info["query_start_time"].pop()
        duration_ms = (time.perf_counter() - started) * 1000
        if duration_ms > threshold_ms:
            logger.warning(
                "slow_query",
                statement=statement[:200],
                duration_ms=round(duration_ms, 2),
            )


def reclaim_if_idle(
    connection_record: Any, idle_timeout: float, now: float | None = None
) -> None:
    """Refuse a pooled connection that sat unused for longer than ``idle_timeout``.

    Raising ``DisconnectionError`` from a checkout listener makes the pool
    discard the connection and open a fresh one.

    Raises:
        DisconnectionError: If the connection has been idle too long
    """
    checked_in_at = connection_record.info.pop("checked_in_at", None)
    if checked_in_at is None:
        return
    idle = (time.monotonic() if now is None else now) - checked_in_at
    if idle > idle_timeout:
        logger.debug("pool_connection_reclaimed", idle_seconds=round(idle, 1))
        raise DisconnectionError(f"Connection idle for {idle:.1f}s")


def install_idle_reclaim(engine: AsyncEngine, idle_timeout: float) -> None:
    """Drop pooled connections left idle longer than ``idle_timeout`` seconds.

    ``pool_recycle`` only bounds a connection's age; this bounds the time it
    spends checked in.
    """

    @event.listens_for(engine.sync_engine, "checkin")
    def _mark_idle(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        connection_record.info["checked_in_at"] = time.monotonic()

    @event.listens_for(engine.sync_engine, "checkout")
    def _check_idle(dbapi_connection, connection_record, connection_proxy):  # type: ignore[no-untyped-def]
        reclaim_if_idle(connection_record, idle_timeout)


class DataStore:
    """Owns the async engine and hands out transactional sessions.

    Usage:
        store = DataStore.from_settings(settings)
        async with store.session() as session:
            await session.execute(...)
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self._session_factory = self.session_factory()

    @classmethod
    def from_settings(cls, settings: Settings) -> "DataStore":
        """Create a store with a bounded pool configured from settings."""
        engine = create_async_engine(
            settings.async_database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=settings.database_pool_timeout,
            pool_recycle=settings.database_pool_recycle,
            echo=settings.database_echo,
            pool_pre_ping=True,  # Verify connections before use
        )
        install_slow_query_logging(engine, settings.slow_query_threshold_ms)
        install_idle_reclaim(engine, settings.database_pool_idle_timeout)
        return cls(engine)

    def session_factory(self, **execution_options: Any) -> async_sessionmaker[AsyncSession]:
        """Build a session factory over the shared pool.

        Execution options (such as ``schema_translate_map``) are applied to a
        lightweight engine copy; the pool itself is shared.
        """
        bind = self.engine
        if execution_options:
            bind = self.engine.execution_options(**execution_options)
        return async_sessionmaker(
            bind=bind,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Provide a session wrapped in a transaction.

        Commits when the block exits cleanly, rolls back otherwise.
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> None:
        """Round-trip to the database; raises if it is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
        logger.info("database_engine_disposed")
