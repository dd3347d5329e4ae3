"""
DatabaseService: async engine and session management for tutorboard.

Purpose
-------
Own the single async SQLAlchemy engine and hand out sessions:

- `get_session()` for reads (no commit)
- `get_transaction()` for atomic writes (commit on success, rollback on error)

Design Notes
------------
- Class-level singleton; `initialize()` is idempotent and guarded by a lock.
- AsyncAdaptedQueuePool in normal operation, NullPool when `Config.is_testing()`.
- On PostgreSQL every session sets `SET LOCAL statement_timeout` from
  `Config.DATABASE_STATEMENT_TIMEOUT_MS`.
- Sessions use `expire_on_commit=False` so ORM rows stay readable after
  the transaction closes.

Error Handling
--------------
- `DatabaseInitializationError`: invalid URL or engine creation failure.
- `DatabaseNotInitializedError`: session requested before `initialize()`.
- Any exception inside `get_transaction()` rolls back and re-raises.
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
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool, Pool

from tutorboard.core.config.config import Config
from tutorboard.core.database.base import Base
from tutorboard.core.logging.logger import get_logger

logger = get_logger(__name__)


class DatabaseInitializationError(RuntimeError):
    """Raised when database engine initialization fails."""


class DatabaseNotInitializedError(RuntimeError):
    """Raised when database operations are attempted before initialization."""


@dataclass(frozen=True)
class _DatabaseConfigSnapshot:
    url: str
    echo: bool
    pool_class: Type[Pool]
    pool_size: int
    max_overflow: int
    pool_recycle: int
    pool_timeout: int
    statement_timeout_ms: int

    @property
    def is_postgres(self) -> bool:
        return self.url.startswith(("postgresql://", "postgresql+asyncpg://"))

    @property
    def url_scheme(self) -> str:
        return self.url.split(":", 1)[0] if ":" in self.url else "unknown"


class DatabaseService:
    """
    Centralized async database engine and session management.

    Public API
    ----------
    - initialize() / shutdown()
    - get_session() -> read-only session
    - get_transaction() -> atomic write transaction (preferred)
    - create_schema() -> create all mapped tables
    - health_check() -> fast reachability probe
    """

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _config_snapshot: Optional[_DatabaseConfigSnapshot] = None
    _init_lock: asyncio.Lock = asyncio.Lock()

    # ========================================================================
    # Initialization & Shutdown
    # ========================================================================

    @classmethod
    def _build_config_snapshot(
        cls, database_url: Optional[str] = None
    ) -> _DatabaseConfigSnapshot:
        url = database_url or Config.DATABASE_URL
        if not url or not isinstance(url, str):
            logger.error("DATABASE_URL is not configured or invalid")
            raise DatabaseInitializationError(
                "DATABASE_URL must be configured as a non-empty string"
            )

        is_testing = Config.is_testing()
        pool_class: Type[Pool] = NullPool if is_testing else AsyncAdaptedQueuePool

        snapshot = _DatabaseConfigSnapshot(
            url=url,
            echo=Config.DATABASE_ECHO,
            pool_class=pool_class,
            pool_size=Config.DATABASE_POOL_SIZE,
            max_overflow=Config.DATABASE_MAX_OVERFLOW,
            pool_recycle=Config.DATABASE_POOL_RECYCLE,
            pool_timeout=Config.DATABASE_POOL_TIMEOUT,
            statement_timeout_ms=Config.DATABASE_STATEMENT_TIMEOUT_MS,
        )

        logger.debug(
            "Database configuration snapshot created",
            extra={
                "url_scheme": snapshot.url_scheme,
                "pool_class": pool_class.__name__,
                "pool_size": snapshot.pool_size,
                "statement_timeout_ms": snapshot.statement_timeout_ms,
                "is_testing": is_testing,
            },
        )
        return snapshot

    @classmethod
    async def initialize(cls, database_url: Optional[str] = None) -> None:
        """
        Initialize the engine and session factory.

        Idempotent: a second call while initialized is a no-op.

        Raises
        ------
        DatabaseInitializationError
            If configuration is invalid or engine creation fails.
        """
        async with cls._init_lock:
            if cls._engine is not None:
                logger.debug("DatabaseService already initialized; skipping")
                return

            logger.info("Initializing DatabaseService")

            try:
                config = cls._build_config_snapshot(database_url)

                engine_kwargs: dict[str, Any] = {
                    "echo": config.echo,
                    "poolclass": config.pool_class,
                }
                if config.pool_class is AsyncAdaptedQueuePool:
                    engine_kwargs.update(
                        {
                            "pool_size": config.pool_size,
                            "max_overflow": config.max_overflow,
                            "pool_recycle": config.pool_recycle,
                            "pool_timeout": config.pool_timeout,
                        }
                    )

                cls._engine = create_async_engine(config.url, **engine_kwargs)
                cls._session_factory = async_sessionmaker(
                    bind=cls._engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                )
                cls._config_snapshot = config

                logger.info(
                    "DatabaseService initialized successfully",
                    extra={
                        "url_scheme": config.url_scheme,
                        "pool_class": config.pool_class.__name__,
                    },
                )

            except Exception as exc:
                logger.error(
                    "DatabaseService initialization failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                    exc_info=True,
                )
                if isinstance(exc, DatabaseInitializationError):
                    raise
                raise DatabaseInitializationError(
                    f"Database initialization failed: {exc}"
                ) from exc

    @classmethod
    async def shutdown(cls) -> None:
        """Dispose the engine. Safe to call repeatedly."""
        async with cls._init_lock:
            if cls._engine is None:
                logger.debug("DatabaseService not initialized; nothing to shutdown")
                return

            logger.info("Shutting down DatabaseService")
            try:
                await cls._engine.dispose()
            finally:
                cls._engine = None
                cls._session_factory = None
                cls._config_snapshot = None

    @classmethod
    async def create_schema(cls) -> None:
        """Create every mapped table that does not exist yet."""
        cls._ensure_initialized()
        assert cls._engine is not None

        import tutorboard.database.models  # noqa: F401  (registers mappers)

        async with cls._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info(
            "Database schema ensured",
            extra={"tables": sorted(Base.metadata.tables.keys())},
        )

    # ========================================================================
    # Health Check
    # ========================================================================

    @classmethod
    async def health_check(cls) -> bool:
        """Run `SELECT 1`. Returns False instead of raising."""
        if cls._engine is None:
            logger.warning("Health check called on uninitialized DatabaseService")
            return False

        start = time.perf_counter()
        try:
            async with cls._engine.begin() as conn:
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

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._engine is not None

    @classmethod
    def _ensure_initialized(cls) -> None:
        if cls._session_factory is None or cls._engine is None:
            logger.error("DatabaseService operation attempted before initialization")
            raise DatabaseNotInitializedError(
                "DatabaseService must be initialized before use. "
                "Call DatabaseService.initialize() during startup."
            )

    @classmethod
    async def _apply_statement_timeout(cls, session: AsyncSession) -> None:
        config = cls._config_snapshot
        if config is not None and config.is_postgres:
            await session.execute(
                text(f"SET LOCAL statement_timeout = {config.statement_timeout_ms}")
            )

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session without automatic commit, for reads.

        Raises
        ------
        DatabaseNotInitializedError
            If DatabaseService has not been initialized.
        """
        cls._ensure_initialized()
        assert cls._session_factory is not None

        start = time.perf_counter()
        async with cls._session_factory() as session:
            try:
                await cls._apply_statement_timeout(session)
                yield session
            finally:
                await session.close()
                logger.debug(
                    "Database session closed",
                    extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
                )

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Session wrapped in an atomic transaction.

        Commits when the block exits normally. Any exception rolls the
        transaction back and is re-raised unchanged.

        >>> async with DatabaseService.get_transaction() as session:
        ...     row = await repo.find_one_where(session, ..., for_update=True)
        """
        cls._ensure_initialized()
        assert cls._session_factory is not None

        start = time.perf_counter()
        async with cls._session_factory() as session:
            try:
                await cls._apply_statement_timeout(session)
                yield session
                await session.commit()
                logger.debug(
                    "Database transaction committed",
                    extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
                )
            except Exception as exc:
                await session.rollback()
                log = logger.error if isinstance(exc, (OperationalError, DBAPIError)) else logger.debug
                log(
                    "Database transaction rolled back",
                    extra={
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                )
                raise
