"""
Database Management and Configuration.

This module sets up the asynchronous database connection for the Content
Review API. It uses SQLAlchemy with `asyncio` support and SQLModel for data
modeling.

Key Components:
- `Database`: Owns the async engine (and with it the connection pool) and the
  session factory. One instance is created in the application lifespan and
  stored on `app.state`; nothing else in the process holds a pool.
- `create_engine_for_url`: Builds the engine for SQLite (development, tests)
  or PostgreSQL (production) with the pool limits the service runs under.
- `get_database_info`: Diagnostic information for health checks.

Architectural Design:
- Explicit ownership: stores and services receive a session; they never reach
  for a module-level engine, which keeps them testable against an in-memory
  database.
- Connection Pooling: PostgreSQL connections come from a bounded
  `AsyncAdaptedQueuePool` with connect and idle timeouts. An in-memory SQLite
  URL uses a `StaticPool` so every session sees the same database.
- Scoped sessions: `Database.session()` is an async context manager; leaving
  it closes the session and returns the connection to the pool on every exit
  path, rolling back anything that was not committed.
"""

import os
import logging
from typing import Any, Dict, Optional
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# Table metadata registration
from core import models  # noqa: F401

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./marketing_dashboard.db"

logger = logging.getLogger(__name__)


def create_engine_for_url(database_url: str) -> AsyncEngine:
    """Create async engine based on database type"""
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            return create_async_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=False,
            )
        return create_async_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=AsyncAdaptedQueuePool,
            echo=False,
        )

    # PostgreSQL configuration with asyncpg
    return create_async_engine(
        database_url,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=20,
        max_overflow=0,
        pool_timeout=10,  # Wait for a free connection
        pool_recycle=30,  # Drop connections idle for longer
        pool_pre_ping=True,
        connect_args={"timeout": 10},
        echo=False,
    )


class Database:
    """Engine plus session factory for one process"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
        self.engine = create_engine_for_url(self.database_url)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    def session(self) -> AsyncSession:
        """New session; use as `async with database.session() as session`."""
        return self.session_factory()

    async def create_tables(self):
        """
        Create all tables.
        Called during application startup.
        """
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
            logger.info("Content review database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create content review database tables: {e}")
            raise

    async def dispose(self):
        await self.engine.dispose()

    async def ping(self) -> bool:
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

    async def get_database_info(self) -> Dict[str, Any]:
        """
        Get basic database information for health checks.
        """
        url = make_url(self.database_url)
        return {
            "database_type": url.get_backend_name(),
            "database": url.database,
            "host": url.host,
            "connection_healthy": await self.ping(),
            "pool": self.engine.pool.status(),
        }
