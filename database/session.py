"""
Async SQLAlchemy engine and session factory for PostgreSQL.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from config.settings import config
from database.models import Base

logger = logging.getLogger(__name__)

engine = create_async_engine(
    config.database_url,
    echo=False,
    pool_size=10,
    max_overflow=20,
    pool_recycle=3600,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create missing tables (``CREATE TABLE IF NOT EXISTS`` semantics)."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Table `notion_tokens` is ready")
