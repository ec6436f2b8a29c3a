"""
Photobook Backend — Database Session Management
=================================================

What:  Lazily created async SQLAlchemy engine, session factory, and the
       FastAPI session dependency.
Why:   The store may not be reachable when the process boots (container
       ordering, database restarts). Nothing touches the network until the
       first request needs a session, and that first connect is retried.
How:   get_engine() builds the engine on first use. ensure_connection() runs
       `SELECT 1` under a tenacity retry policy once per process.
       get_db_session() commits on success and rolls back on error.

Record families:
    submissions    — galleries, stories, registrations, suggestions
    notifications  — admin and photographer inboxes

SQLite note:
    pysqlite/aiosqlite manage transactions themselves, which breaks SAVEPOINT.
    The notification fan-out relies on savepoints, so SQLite engines get
    SQLAlchemy's documented listener pair that hands BEGIN back to us.
"""

import logging
from typing import AsyncGenerator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from photobook.config import settings

logger = logging.getLogger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None
_connected = False


class Base(DeclarativeBase):
    """Base class for all ORM models; Alembic reads Base.metadata."""
    pass


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """
    Let SQLAlchemy own BEGIN on SQLite so nested transactions work.

    Safe to call on non-SQLite engines (no-op).
    """
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first call."""
    global _engine
    if _engine is None:
        kwargs = {"echo": settings.log_level == "DEBUG"}
        if not settings.is_sqlite:
            kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )
        _engine = create_async_engine(settings.database_url, **kwargs)
        enable_sqlite_savepoints(_engine)
        logger.info("Database engine created (dialect=%s)", _engine.dialect.name)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        # expire_on_commit=False: response models read attributes after commit
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


@retry(
    retry=retry_if_exception_type((OperationalError, OSError, ConnectionError)),
    stop=stop_after_attempt(settings.db_connect_attempts),
    wait=wait_exponential_jitter(
        initial=settings.db_connect_min_wait,
        max=settings.db_connect_max_wait,
        jitter=1,
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def _ping() -> None:
    async with get_engine().connect() as conn:
        await conn.execute(text("SELECT 1"))


async def ensure_connection() -> None:
    """
    Verify connectivity once per process, retrying transient failures.

    Raises the last OperationalError/OSError once attempts are exhausted;
    the global handler turns that into a generic 500.
    """
    global _connected
    if _connected:
        return
    await _ping()
    _connected = True
    logger.info("Database connection verified")


async def create_all() -> None:
    """Create every table known to Base.metadata (local development only)."""
    # Imported for their side effect of registering tables on Base.metadata
    from photobook.models import notification, submission  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides one database session per request.

    How it works:
        1. Verifies connectivity on the first request (retried)
        2. Yields a session to the route handler
        3. Commits on success, rolls back on any exception
        4. Always closes the session
    """
    await ensure_connection()
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine (shutdown hook)."""
    global _engine, _session_factory, _connected
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
    _connected = False
