"""
Async database access.

One engine per process, owned by ``DatabaseManager``. Request handlers get a
session through ``get_db_session``; services that own their transaction
(the campaign update) get the session factory through
``get_session_factory`` and open their own.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ohmage.config import get_settings


class Base(DeclarativeBase):
    """Declarative base shared by every ORM table."""


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseManager:
    """Lazily creates the engine and session factory for one database URL."""

    def __init__(self, database_url: str | None = None) -> None:
        """
        Args:
            database_url: Overrides ``Settings.database_url``.
        """
        self.database_url = database_url or get_settings().database_url
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            options: dict[str, Any] = {"echo": get_settings().debug, "pool_pre_ping": True}
            if not self.is_sqlite:
                options.update(pool_size=5, max_overflow=10)
            self._engine = create_async_engine(self.database_url, **options)
            if self.is_sqlite:
                # Cascades on user/campaign/class deletes rely on enforced keys.
                event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session that commits on success and rolls back on any error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Dispose of the engine; the next access creates a new one."""
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None


_db_manager: DatabaseManager | None = None


def get_database_manager() -> DatabaseManager:
    """Process-wide database manager."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    async with get_database_manager().session() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """FastAPI dependency for services that open their own transactions."""
    return get_database_manager().session_factory


__all__ = [
    "Base",
    "DatabaseManager",
    "get_database_manager",
    "get_db_session",
    "get_session_factory",
]
