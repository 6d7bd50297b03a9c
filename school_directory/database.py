"""
Database connection and session management for SQLAlchemy 2.0.
Configured for async operations with Supabase PostgreSQL.
"""
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from sqlalchemy import event, text
from urllib.parse import urlparse
import logging
import socket

from school_directory.config import settings

logger = logging.getLogger(__name__)

# Create declarative base for models
Base = declarative_base()

_engine_args = {
    "echo": False,  # Set to True for SQL query logging in development
}

if settings.DATABASE_URL and settings.DATABASE_URL.startswith("postgresql"):
    _engine_args.update({
        "pool_size": 10,
        "max_overflow": 20,
        "pool_pre_ping": True,  # Verify connections before using (handles stale connections)
        "pool_recycle": 3600,
        "connect_args": {
            "server_settings": {
                "application_name": "school-directory-backend"
            }
        }
    })
else:
    # A single shared connection keeps the in-memory database alive across sessions
    _engine_args.update({
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    })

engine = create_async_engine(
    settings.DATABASE_URL if settings.DATABASE_URL else "sqlite+aiosqlite:///:memory:",
    **_engine_args
)


if engine.dialect.name == "sqlite":
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncSession:
    """
    FastAPI dependency for database sessions.
    Provides async database session with automatic commit/rollback.

    Usage:
        @app.get("/endpoint")
        async def my_endpoint(db: AsyncSession = Depends(get_db)):
            # Use db session here
            pass
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {str(e)}", exc_info=True)
            raise
        finally:
            await session.close()


def _validate_database_url(url: str) -> tuple[bool, str]:
    """
    Validate database URL and provide diagnostic information.
    Returns (is_valid, diagnostic_message)
    """
    if not url:
        return False, "DATABASE_URL is empty"

    try:
        parsed = urlparse(url)

        if not url.startswith(("postgresql://", "postgresql+asyncpg://", "sqlite+aiosqlite://")):
            return False, f"Invalid database URL scheme. Expected postgresql+asyncpg:// or sqlite+aiosqlite://, got: {parsed.scheme}"

        if parsed.scheme.startswith("sqlite"):
            return True, f"SQLite database: {parsed.path or ':memory:'}"

        hostname = parsed.hostname
        if not hostname:
            return False, "No hostname found in DATABASE_URL"

        try:
            socket.getaddrinfo(hostname, None)
            dns_status = "DNS resolution successful"
        except socket.gaierror as e:
            dns_status = f"DNS resolution failed: {str(e)}. This may indicate network connectivity issues or incorrect hostname."

        return True, f"URL format valid. Hostname: {hostname}, Port: {parsed.port or 5432}, Database: {parsed.path or '/postgres'}. {dns_status}"

    except Exception as e:
        return False, f"Error parsing DATABASE_URL: {str(e)}"


async def create_tables():
    """
    Create all tables that do not exist yet.
    Used for the in-memory development database; PostgreSQL is managed by Alembic.
    """
    # Import models so they register on Base.metadata
    from school_directory import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


async def init_db():
    """
    Initialize database connection.
    Can be used for startup events to verify connection.
    """
    if not settings.DATABASE_URL:
        logger.warning("DATABASE_URL not set, using in-memory SQLite database")
        await create_tables()
        return

    is_valid, diagnostic = _validate_database_url(settings.DATABASE_URL)
    if not is_valid:
        logger.error(f"Invalid DATABASE_URL: {diagnostic}")
        raise ValueError(f"Invalid DATABASE_URL: {diagnostic}")

    logger.info(f"Database URL validation: {diagnostic}")

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            logger.info("Database connection initialized successfully")
        if engine.dialect.name == "sqlite":
            await create_tables()
    except Exception as e:
        error_msg = str(e)
        if "connection refused" in error_msg.lower() or "timeout" in error_msg.lower():
            logger.error(
                f"Database connection failed - Connection refused/timeout: {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        elif "authentication failed" in error_msg.lower() or "password" in error_msg.lower():
            logger.error(
                f"Database connection failed - Authentication error: {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        else:
            logger.error(
                f"Database connection failed ({type(e).__name__}): {error_msg}\n"
                f"Diagnostic: {diagnostic}"
            )
        raise


async def close_db():
    """
    Close database connections.
    Can be used for shutdown events.
    """
    await engine.dispose()
    logger.info("Database connections closed")
