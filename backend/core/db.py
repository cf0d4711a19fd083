# core/db.py
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import models.db_models  # noqa: F401  registers tables on SQLModel.metadata

def to_async_url(database_url: str) -> str:
    """Convert sqlite:// URLs to their aiosqlite equivalent."""
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url

def create_db_engine(database_url: str, **engine_kwargs) -> AsyncEngine:
    """
    Build an async engine for the content database.
    In-memory SQLite needs a single shared connection, so it gets a StaticPool.
    """
    url = to_async_url(database_url)
    options = {"echo": False, "pool_pre_ping": True}

    if url.startswith("sqlite"):
        options["connect_args"] = {
            "check_same_thread": False,  # Allow multi-threading
            "timeout": 20,  # 20s timeout for database locks
        }
        if ":memory:" in url:
            options["poolclass"] = StaticPool
    else:
        options["pool_recycle"] = 300  # Recycle connections every 5 minutes

    options.update(engine_kwargs)
    return create_async_engine(url, **options)

async def init_db(engine: AsyncEngine) -> None:
    """Create all tables (idempotent)"""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

@asynccontextmanager
async def session_scope(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Context manager for async database operations"""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
