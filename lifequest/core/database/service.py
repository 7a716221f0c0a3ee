"""
Database Service - Core Infrastructure Layer

Purpose
-------
Async SQLAlchemy engine and session management backing the remote
document store. One ``DatabaseService`` instance owns one engine; callers
construct it explicitly, ``connect()`` it at startup and ``close()`` it on
shutdown.

Responsibilities
----------------
- Create and dispose a single AsyncEngine with connection pooling
- Provide async context managers for sessions and atomic transactions
- Commit on success, roll back on any exception inside ``transaction()``
- Expose a lightweight ``health_check`` (``SELECT 1``)
- Create the schema for all ``Base`` models on demand

Non-Responsibilities
--------------------
- Snapshot semantics such as merge vs replace (handled by DocumentStore)
- Retry policies for transient failures
- Schema migrations

Architecture Notes
------------------
**Explicit lifecycle**:
There is no module-level engine. Two instances never share state, which
keeps tests isolated and lets the CLI run without any database at all
when the local backend is selected.

**Connection Pooling**:
- QueuePool in normal operation (pool_size / max_overflow from Config)
- NullPool in the testing environment and for SQLite URLs

Usage Example
-------------
>>> service = DatabaseService(url="postgresql+asyncpg://...")
>>> await service.connect()
>>> async with service.transaction() as session:
...     session.add(UserDocument(user_id="u1", data={}))
>>> await service.close()

Error Handling
--------------
**DatabaseInitializationError** - URL missing or engine creation failed.
**DatabaseNotInitializedError** - session requested before ``connect()``
or after ``close()``.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Optional, Type

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, Pool

from lifequest.core.config.config import Config
from lifequest.core.database.base import Base
from lifequest.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Exceptions
# ============================================================================


class DatabaseInitializationError(RuntimeError):
    """Raised when database engine initialization fails."""


class DatabaseNotInitializedError(RuntimeError):
    """Raised when database operations are attempted before initialization."""


# ============================================================================
# Configuration Snapshot
# ============================================================================


@dataclass(frozen=True)
class DatabaseSettings:
    """
    Immutable view of the engine settings.

    Built from ``Config`` by default; tests pass explicit values.
    """

    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle: int = 1800
    pool_timeout: int = 30
    use_null_pool: bool = False

    @classmethod
    def from_config(cls, url: Optional[str] = None) -> "DatabaseSettings":
        database_url = url if url is not None else Config.DATABASE_URL
        if not database_url or not isinstance(database_url, str):
            logger.error("DATABASE_URL is not configured or invalid")
            raise DatabaseInitializationError(
                "DATABASE_URL must be configured as a non-empty string"
            )

        return cls(
            url=database_url,
            echo=bool(Config.DATABASE_ECHO),
            pool_size=int(Config.DATABASE_POOL_SIZE),
            max_overflow=int(Config.DATABASE_MAX_OVERFLOW),
            pool_recycle=int(Config.DATABASE_POOL_RECYCLE),
            pool_timeout=int(Config.DATABASE_POOL_TIMEOUT),
            use_null_pool=Config.is_testing() or database_url.startswith("sqlite"),
        )

    @property
    def url_scheme(self) -> str:
        """URL scheme for logging (never the full URL, it may hold credentials)."""
        return self.url.split(":", 1)[0] if ":" in self.url else "unknown"


# ============================================================================
# DatabaseService
# ============================================================================


class DatabaseService:
    """
    Async engine and session owner.

    Public API
    ----------
    - connect() / close() -> engine lifecycle (both idempotent)
    - session() -> plain session, caller controls commits
    - transaction() -> atomic unit of work (preferred for writes)
    - health_check() -> fast reachability probe
    - create_schema() -> create tables for all ``Base`` models
    """

    def __init__(
        self,
        url: Optional[str] = None,
        settings: Optional[DatabaseSettings] = None,
    ) -> None:
        self._url = url
        self._settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._lock = asyncio.Lock()

    # ========================================================================
    # Lifecycle
    # ========================================================================

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> AsyncEngine:
        self._ensure_connected()
        assert self._engine is not None
        return self._engine

    async def connect(self) -> None:
        """
        Create the engine and session factory.

        Raises
        ------
        DatabaseInitializationError
            If configuration is invalid or engine creation fails.
        """
        async with self._lock:
            if self._engine is not None:
                logger.debug("DatabaseService already connected; skipping")
                return

            try:
                settings = self._settings or DatabaseSettings.from_config(self._url)
                self._settings = settings

                engine_kwargs: dict[str, Any] = {"echo": settings.echo}
                if settings.use_null_pool:
                    pool_class: Type[Pool] = NullPool
                    engine_kwargs["poolclass"] = pool_class
                else:
                    engine_kwargs.update(
                        {
                            "pool_size": settings.pool_size,
                            "max_overflow": settings.max_overflow,
                            "pool_recycle": settings.pool_recycle,
                            "pool_timeout": settings.pool_timeout,
                            "pool_pre_ping": True,
                        }
                    )

                self._engine = create_async_engine(settings.url, **engine_kwargs)
                self._session_factory = async_sessionmaker(
                    bind=self._engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                )

                logger.info(
                    "DatabaseService connected",
                    extra={
                        "url_scheme": settings.url_scheme,
                        "null_pool": settings.use_null_pool,
                    },
                )

            except Exception as exc:
                logger.error(
                    "DatabaseService connection failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )
                if isinstance(exc, DatabaseInitializationError):
                    raise
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

    async def close(self) -> None:
        """Dispose the engine. Safe to call when not connected."""
        async with self._lock:
            if self._engine is None:
                return

            try:
                await self._engine.dispose()
                logger.info("DatabaseService closed")
            finally:
                self._engine = None
                self._session_factory = None

    async def create_schema(self) -> None:
        """Create all tables registered on ``Base.metadata``."""
        # Registers the table on Base.metadata
        from lifequest.database.models import UserDocument  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    # ========================================================================
    # Health Check
    # ========================================================================

    async def health_check(self) -> bool:
        """
        Execute ``SELECT 1``.

        Returns False instead of raising on failure.
        """
        if self._engine is None:
            logger.warning("Health check called on unconnected DatabaseService")
            return False

        start = time.perf_counter()
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (OperationalError, DBAPIError) as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False
        finally:
            logger.debug(
                "Database health check completed",
                extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
            )

    # ========================================================================
    # Session & Transaction Context Managers
    # ========================================================================

    def _ensure_connected(self) -> None:
        if self._session_factory is None or self._engine is None:
            raise DatabaseNotInitializedError(
                "DatabaseService must be connected before use. "
                "Call `await service.connect()` during startup."
            )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session without automatic commit; closed on exit."""
        self._ensure_connected()
        assert self._session_factory is not None

        async with self._session_factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in an atomic transaction.

        Commits when the block exits normally and rolls back on any
        exception, which is then re-raised.
        """
        self._ensure_connected()
        assert self._session_factory is not None

        start = time.perf_counter()
        async with self._session_factory() as session:
            try:
                async with session.begin():
                    yield session
            except Exception as exc:
                logger.warning(
                    "Transaction rolled back",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
                raise

        logger.debug(
            "Transaction committed",
            extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
        )


__all__ = [
    "DatabaseService",
    "DatabaseSettings",
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
