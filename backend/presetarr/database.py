"""
Database connection and session management.

SQLite Notes:
-------------
1. WAL Mode (Write-Ahead Logging):
   - Enables concurrent reads during writes

2. NullPool:
   - Creates new connection for each operation (required for async SQLite)
   - SQLite handles concurrent access via file-level locking

3. Busy Timeout (5 seconds):
   - Prevents "database is locked" errors during concurrent access

Limitations:
- Single-writer: Only one write transaction at a time, which matches the
  single-writer model of preset apply/rollback
"""
from pathlib import Path

from loguru import logger
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

from presetarr.config import settings
from presetarr.constants import SQLITE_BUSY_TIMEOUT_MS

# Base class for models
Base = declarative_base()


def register_sqlite_pragmas(async_engine: AsyncEngine) -> None:
    """
    Enable SQLite-specific settings on every new connection of the engine.

    - PRAGMA foreign_keys=ON: Enable foreign key constraints (disabled by default in SQLite)
    - PRAGMA journal_mode=WAL: Use Write-Ahead Logging for better concurrency
    - PRAGMA busy_timeout: Wait for locks to release instead of failing

    The driver's own BEGIN handling is switched off and SQLAlchemy emits
    BEGIN itself, otherwise SAVEPOINTs (one per preset item write) do not
    nest inside the session transaction.
    """
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
        cursor.close()
        dbapi_conn.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    poolclass=NullPool,
)
register_sqlite_pragmas(engine)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncSession:
    """
    Dependency for getting database session.

    Usage:
        @router.get("/endpoint")
        async def endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file based SQLite database."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


async def init_db():
    """Initialize database tables."""
    # Import models so they are registered on Base.metadata
    import presetarr.models  # noqa: F401

    _ensure_sqlite_directory(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ready")


async def close_db():
    """Close database connections."""
    await engine.dispose()
