# eduledger/core/database.py
"""Database connection and session management using SQLAlchemy."""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy import text
import logging

from .config import settings

logger = logging.getLogger(__name__)


def build_engine(database_url: str, **overrides) -> AsyncEngine:
    """Create an async engine; pool tuning only applies to server databases"""
    options = {
        "pool_pre_ping": True,
        "echo": False,
    }
    if database_url.startswith("postgresql"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=1800,
            connect_args={
                "command_timeout": settings.db_command_timeout,
                "server_settings": {
                    "application_name": settings.app_name,
                    "idle_in_transaction_session_timeout": "60s",
                    "lock_timeout": "30s",
                },
            },
        )
    options.update(overrides)
    return create_async_engine(database_url, **options)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        expire_on_commit=False,
        class_=AsyncSession,
        autoflush=False,
    )


engine = build_engine(settings.database_url)

AsyncSessionLocal = build_sessionmaker(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session for API requests with proper error handling"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            logger.error(f"Database session error: {e}")
            await session.rollback()
            raise


async def health_check_db(bind: AsyncEngine = None) -> bool:
    """Fast health check"""
    try:
        async with (bind or engine).connect() as conn:
            await conn.execute(text("SELECT 1"))
            return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


async def close_db_connections():
    """Properly close all database connections"""
    await engine.dispose()
    logger.info("Database connections closed")
