"""Database configuration and session management."""

import os
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base


def normalize_database_url(url: str) -> str:
    """Rewrite provider-style postgres URLs to the asyncpg driver."""
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if not url:
        return "sqlite+aiosqlite:///./fuelledger.db"
    return url


DATABASE_URL = normalize_database_url(os.getenv("DATABASE_URL", ""))

# REPEATABLE READ keeps balance + transaction reads on one snapshot (postgres only)
_engine_options: dict = {}
if os.getenv("DB_ISOLATION_LEVEL"):
    _engine_options["isolation_level"] = os.getenv("DB_ISOLATION_LEVEL")

engine = create_async_engine(DATABASE_URL, **_engine_options)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Declarative base
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one unit of work per request.

    Every ledger mutation in a request commits together or not at all.
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
