"""
Database connection and session management.

This module handles database connections and provides dependency injection
for database sessions in FastAPI.

Design Rationale:
- Async session management, one session per request
- Connection pooling for server databases
- Dependency injection pattern for testability
- Automatic session cleanup and error handling
"""

from typing import AsyncGenerator, Dict, Any

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


def engine_options(database_url: str) -> Dict[str, Any]:
    """Pool options for the given URL; SQLite does not take QueuePool sizing."""
    options: Dict[str, Any] = {"echo": settings.DEBUG, "future": True}
    if not database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_pre_ping=settings.DATABASE_POOL_PRE_PING,
        )
    return options


engine = create_async_engine(
    str(settings.DATABASE_URL),
    **engine_options(str(settings.DATABASE_URL))
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get database session.

    Yields:
        AsyncSession: Database session for the request
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            logger.error("Database session error", error=str(e))
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables() -> None:
    """Create all database tables."""
    # Register table metadata before create_all
    import app.models.database  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables created")
