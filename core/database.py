"""
Database engine and session helpers with SQLAlchemy async
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
import logging

logger = logging.getLogger(__name__)


def create_engine(database_url: str) -> AsyncEngine:
    """Create an async engine for the given URL"""
    return create_async_engine(
        database_url,
        echo=False,
        poolclass=NullPool,  # Connections are short-lived, one per operation
        future=True
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker:
    """Create session factory bound to an engine"""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False
    )


@asynccontextmanager
async def connect(database_url: str) -> AsyncIterator[AsyncConnection]:
    """
    Open a transactional connection to an arbitrary database URL.

    Used by the database extractor and loader, which talk to
    caller-configured databases rather than the job store. The transaction
    commits on clean exit and rolls back on error.
    """
    engine = create_engine(database_url)
    try:
        async with engine.begin() as conn:
            yield conn
    finally:
        await engine.dispose()
