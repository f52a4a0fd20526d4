"""
Database connection management with SQLAlchemy and connection pooling.
"""
import time
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool
from sqlalchemy import event
from app.core.config import settings
from app.core.logging import get_logger, DatabaseLogHandler

logger = get_logger(__name__)
db_log_handler = DatabaseLogHandler()


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def _engine_options(database_url: str) -> dict:
    """Build engine keyword arguments for the configured backend."""
    if settings.DEBUG:
        # Simple configuration for development
        return {"poolclass": NullPool, "echo": True}

    if database_url.startswith("sqlite"):
        return {"echo": False}

    # Production configuration with connection pooling
    return {
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_pre_ping": True,
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "pool_timeout": 30,
        "echo": False,
        "connect_args": {
            "server_settings": {
                "application_name": "letter_versions",
                "jit": "off",
            },
            "command_timeout": 60,
        },
    }


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
    autocommit=False,
)


def _table_name(statement: str) -> str:
    """Best-effort extraction of the table a statement touches."""
    upper = statement.upper()
    for keyword in ("FROM", "INTO", "UPDATE"):
        if keyword in upper:
            parts = upper.split(keyword, 1)[1].split()
            if parts:
                return parts[0].strip().replace('"', '')
    return "unknown"


def install_query_logging(target_engine) -> None:
    """Attach slow query and error logging to an engine."""

    @event.listens_for(target_engine.sync_engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.time()

    @event.listens_for(target_engine.sync_engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        start = getattr(context, '_query_start_time', None)
        if start is None:
            return
        duration = time.time() - start
        if duration * 1000 > settings.SLOW_QUERY_THRESHOLD_MS:
            db_log_handler.log_slow_query(
                operation=statement.strip().split()[0].upper(),
                table=_table_name(statement),
                duration=duration,
                statement=statement,
            )

    @event.listens_for(target_engine.sync_engine, "handle_error")
    def handle_error(exception_context):
        db_log_handler.log_error(
            operation="DATABASE_ERROR",
            error=exception_context.original_exception
        )


install_query_logging(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """Initialize database tables."""
    try:
        async with engine.begin() as conn:
            from app.models import document, version  # noqa: F401
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise


async def close_db() -> None:
    """Close database connections."""
    try:
        await engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error("Error closing database connections", error=str(e))
        raise
