"""
Gloo Database Configuration
Async database setup with SQLAlchemy 2.0
"""

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from sqlalchemy import MetaData, text
from contextlib import asynccontextmanager
import structlog
from typing import AsyncGenerator, Optional

from core.config import settings
from core.errors import ServiceError

logger = structlog.get_logger()

# Database engine
engine = None
async_session_factory = None


class Base(DeclarativeBase):
    """Base class for all database models"""

    metadata = MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s"
        }
    )


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # In-memory SQLite must share one connection across sessions
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_timeout": settings.DATABASE_POOL_TIMEOUT,
        "pool_pre_ping": True,
        "pool_recycle": 3600,
    }


async def init_db(database_url: Optional[str] = None) -> None:
    """Initialize database connection"""
    global engine, async_session_factory

    url = database_url or settings.database_url_async

    try:
        engine = create_async_engine(url, echo=settings.DEBUG, **_engine_options(url))

        async_session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        # Test connection
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))

        logger.info("Database connection initialized successfully", dialect=engine.dialect.name)

    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        raise


async def create_tables() -> None:
    """Create all tables registered on the declarative base"""
    if engine is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    # Register every model on the metadata
    import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured", tables=len(Base.metadata.tables))


async def close_db() -> None:
    """Close database connections"""
    global engine, async_session_factory

    if engine:
        await engine.dispose()
        logger.info("Database connections closed")
    engine = None
    async_session_factory = None


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager for database sessions
    Provides automatic transaction management and cleanup
    """
    if not async_session_factory:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            if not isinstance(e, (HTTPException, ServiceError)):
                logger.error(f"Database session error: {str(e)}")
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI to get database session
    """
    async with get_db_session() as session:
        yield session


class DatabaseHealthCheck:
    """Database health check utilities"""

    @staticmethod
    async def check_connection() -> bool:
        """Check if database connection is healthy"""
        try:
            async with get_db_session() as session:
                result = await session.execute(text("SELECT 1"))
                return result.scalar() == 1
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return False


# Export commonly used items
__all__ = [
    "Base",
    "init_db",
    "create_tables",
    "close_db",
    "get_db_session",
    "get_db",
    "DatabaseHealthCheck"
]
