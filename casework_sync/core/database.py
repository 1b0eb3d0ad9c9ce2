"""Database session management and connection pooling."""
from typing import AsyncGenerator
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from casework_sync.core.config import settings

# Create SQLAlchemy engine
engine = create_async_engine(
    str(settings.database_url),
    pool_pre_ping=True,  # Verify connections before using
    pool_size=10,
    max_overflow=20,
    echo=settings.log_level == "DEBUG"
)

# Session factory
SessionLocal = async_sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

# Base class for SQLAlchemy models
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI to get database session.

    Yields:
        Database session that will be automatically closed after use.
    """
    async with SessionLocal() as db:
        yield db


async def init_db() -> None:
    """Initialize database - create the legacy schema and all tables."""
    # Import models so they register on Base.metadata
    from casework_sync.infrastructure.db import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.execute(text("CREATE SCHEMA IF NOT EXISTS legacy"))
        await conn.run_sync(Base.metadata.create_all)
