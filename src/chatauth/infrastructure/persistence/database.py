"""Database abstraction layer using SQLAlchemy 2.0 async.

This module provides the engine and session management for the credential
and session stores. It supports PostgreSQL (asyncpg) in production and
SQLite (aiosqlite) for development and tests.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from chatauth.core.exceptions import InfrastructureError
from chatauth.core.logging import get_logger

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """SQLite enforces ON DELETE CASCADE only with this pragma set per connection."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class DatabaseManager:
    """Database connection and session manager.

    Owns the async engine and the session factory. It is constructed once at
    process start and closed with ``disconnect()``.
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        """Initialize the database manager.

        Args:
            database_url: SQLAlchemy async database URL.
            echo: Log every SQL statement.
        """
        kwargs: dict = {"echo": echo}
        if database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url or database_url.endswith("://"):
                kwargs["poolclass"] = StaticPool
        self._engine: AsyncEngine = create_async_engine(database_url, **kwargs)
        if database_url.startswith("sqlite"):
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self._session_factory = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.info(
            "Database engine created",
            database_url=self._engine.url.render_as_string(hide_password=True),
        )

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return self._session_factory

    async def check_connection(self) -> None:
        """Run a trivial query to prove the database is reachable.

        Raises:
            InfrastructureError: If the database cannot be reached.
        """
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database connection check failed", error=str(e))
            raise InfrastructureError("Database is unreachable") from e
        logger.info("Connected to database")

    async def create_tables(self) -> None:
        """Create all tables defined on ``Base``."""
        # Importing the models registers them on Base.metadata
        from chatauth.infrastructure.persistence import models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def drop_tables(self) -> None:
        """Drop all tables.

        WARNING: This will delete all data.
        """
        from chatauth.infrastructure.persistence import models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("Database tables dropped")

    async def disconnect(self) -> None:
        """Dispose of the engine and close all pooled connections."""
        await self._engine.dispose()
        logger.info("Database engine disposed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a session scoped to one unit of work.

        Example:
            async with db.session() as session:
                service = container.identity_service(session)
                await service.logout(refresh_token)
        """
        async with self._session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
