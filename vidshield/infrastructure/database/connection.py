"""Database connection and session management.

This module provides async database session management using SQLAlchemy 2.0
with proper connection pooling and transaction handling.
"""

from typing import Optional

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from vidshield.infrastructure.config import DatabaseConfig
from vidshield.infrastructure.persistence.models.base import Base

logger = structlog.get_logger(__name__)


def _engine_options(config: DatabaseConfig) -> dict:
    options: dict = {"echo": config.echo}
    if config.url.startswith("sqlite"):
        # In-memory sqlite only lives as long as its single connection
        if ":memory:" in config.url or "mode=memory" in config.url:
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
        return options
    options.update(
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
    )
    return options


class Database:
    """Database connection manager.

    Owns one engine and its session factory; constructed explicitly by
    the application lifespan and disposed on shutdown.
    """

    def __init__(self, config: DatabaseConfig):
        """Initialize database with connection settings."""
        url = config.url
        # Convert to async URL if needed
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            config = config.model_copy(update={"url": url})

        self.engine: AsyncEngine = create_async_engine(url, **_engine_options(config))
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_tables(self) -> None:
        """Create all tables."""
        # Import models so they register with Base.metadata
        from vidshield.infrastructure.persistence import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_tables_ready")

    async def drop_tables(self) -> None:
        """Drop all tables (use with caution)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> Optional[str]:
        """Run a trivial query; return the error text if it fails."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("database_ping_failed", error=str(e))
            return str(e)
        return None

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()
