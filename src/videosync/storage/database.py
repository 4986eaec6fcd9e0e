"""Database connection and session management."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import Connection, Engine, create_engine, text
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from videosync.config import settings
from videosync.observability.logging import get_logger
from videosync.storage.models import Base

logger = get_logger(__name__)

__all__ = [
    "get_engine",
    "get_session",
    "init_db",
    "shutdown_db",
    "get_session_factory",
    "get_async_engine",
    "get_async_session_factory",
    "init_async_db",
    "shutdown_async_db",
    "is_async_url",
    "sync_url",
]

_engine: Engine | None = None
_engine_url: str | None = None
_SessionLocal: sessionmaker[Session] | None = None

_async_engine: AsyncEngine | None = None
_async_engine_url: str | None = None
_AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None

_SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA busy_timeout=3000",
)


def is_async_url(url: str) -> bool:
    return "aiosqlite" in url or "asyncpg" in url


def _is_sqlite_file(url: str) -> bool:
    return url.startswith("sqlite") and ":memory:" not in url


def sync_url(url: str) -> str:
    if url.startswith("sqlite+aiosqlite://"):
        return url.replace("sqlite+aiosqlite://", "sqlite://")
    if url.startswith("postgresql+asyncpg://"):
        return url.replace("postgresql+asyncpg://", "postgresql+psycopg2://")
    return url


def _async_url(url: str) -> str:
    for prefix in ("postgresql+psycopg2://", "postgresql://", "postgres://"):
        if url.startswith(prefix):
            return url.replace(prefix, "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def _engine_kwargs(url: str) -> dict[str, Any]:
    kw: dict[str, Any] = {"pool_pre_ping": True}
    if url.startswith("sqlite"):
        # Allow connections to be used across threads (TestClient + worker threads)
        kw["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url:
            kw["poolclass"] = StaticPool
    return kw


def _apply_sqlite_pragmas(conn: Connection) -> None:
    for pragma in _SQLITE_PRAGMAS:
        conn.execute(text(pragma))


def get_engine() -> Engine:
    """Get or create the sync database engine."""
    global _engine, _engine_url, _SessionLocal
    if _engine is None or _engine_url != settings.database_url:
        if _engine is not None:
            _engine.dispose()

        logger.info("Creating database engine")
        url = sync_url(settings.database_url)
        kw = _engine_kwargs(url)
        if not url.startswith("sqlite"):
            kw["pool_size"] = settings.db_pool_size
            kw["max_overflow"] = settings.db_max_overflow
        _engine = create_engine(url, **kw)
        _engine_url = settings.database_url
        _SessionLocal = None
    return _engine


def get_async_engine() -> AsyncEngine:
    """Get or create the async database engine."""
    global _async_engine, _async_engine_url, _AsyncSessionLocal
    url = _async_url(settings.database_url)

    if _async_engine is None or _async_engine_url != url:
        logger.info("Creating async database engine")
        kw = _engine_kwargs(url)
        if "poolclass" not in kw:
            if url.startswith("sqlite") or not settings.async_use_pool:
                # pytest-asyncio uses per-test event loops; pooled aiosqlite/asyncpg
                # connections must not outlive the loop that created them.
                kw["poolclass"] = NullPool
            else:
                kw["pool_size"] = settings.db_pool_size
                kw["max_overflow"] = settings.db_max_overflow
        _async_engine = create_async_engine(url, **kw)
        _async_engine_url = url
        _AsyncSessionLocal = None
    return _async_engine


def get_session_factory() -> sessionmaker[Session]:
    """Get or create the session factory (sync)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_engine(),
        )
    return _SessionLocal


def get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create async session factory."""
    global _AsyncSessionLocal
    if _AsyncSessionLocal is None:
        _AsyncSessionLocal = async_sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=get_async_engine(),
            class_=AsyncSession,
        )
    return _AsyncSessionLocal


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Context manager that yields a database session."""
    SessionLocal = get_session_factory()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Initialize database tables (sync engine)."""
    logger.info("Initializing database tables")
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    if _is_sqlite_file(settings.database_url):
        with engine.begin() as conn:
            _apply_sqlite_pragmas(conn)
        logger.info("Enabled WAL mode for SQLite database (sync engine)")
    logger.info("Database tables created")


async def init_async_db() -> None:
    """Initialize database tables using the async engine."""
    engine = get_async_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        if _is_sqlite_file(settings.database_url):
            await conn.run_sync(_apply_sqlite_pragmas)
            logger.info("Enabled WAL mode for SQLite database")
    logger.info("Async database tables created")


def shutdown_db() -> None:
    """Dispose the sync engine and clear session factory caches."""
    global _engine, _engine_url, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _engine_url = None
    _SessionLocal = None


async def shutdown_async_db() -> None:
    """Dispose the async engine and clear session factory caches.

    Leaked aiosqlite connections raise unraisable exceptions at interpreter
    shutdown once the event loop is closed, so tests call this on teardown.
    """
    global _async_engine, _async_engine_url, _AsyncSessionLocal
    if _async_engine is not None:
        await _async_engine.dispose()
    _async_engine = None
    _async_engine_url = None
    _AsyncSessionLocal = None
