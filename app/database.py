# app/database.py

# type: ignore[misc]
import logging
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def normalize_database_url(database_url: str) -> str:
    """Convert postgresql:// to postgresql+asyncpg:// for async support"""
    if database_url.startswith('postgres://'):
        database_url = database_url.replace('postgres://', 'postgresql://', 1)
    if database_url.startswith('postgresql://'):
        database_url = database_url.replace('postgresql://', 'postgresql+asyncpg://', 1)
    return database_url


def build_engine(database_url: str) -> AsyncEngine:
    """Create the async engine for a configured DATABASE_URL"""
    if not database_url:
        raise ValueError("DATABASE_URL is not set in environment variables")

    database_url = normalize_database_url(database_url)

    if database_url.startswith('sqlite'):
        # In-memory SQLite has to share one connection across sessions
        return create_async_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_async_engine(
        database_url,
        echo=False,
        future=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
    )


def build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )


async def create_all(engine: AsyncEngine) -> None:
    """Create every table registered on Base (used by tests and first boot without alembic)"""
    from app import models  # noqa: F401  registers the mappers

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_session(session_factory: Optional[async_sessionmaker]) -> AsyncSession:
    if session_factory is None:
        raise RuntimeError("Database storage is not configured")
    session = session_factory()
    try:
        yield session
    finally:
        await session.close()
