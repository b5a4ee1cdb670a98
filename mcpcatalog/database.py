"""Store engine and session management."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from mcpcatalog.config import Settings


def create_engine(
    settings: Settings,
) -> tuple[
    AsyncEngine,
    async_sessionmaker[AsyncSession],
]:
    """Create async engine and session factory.

    Creates the parent directory of a file-backed SQLite store first.
    Returns (engine, session_factory) tuple.
    """
    db_path = settings.database_path
    if db_path is not None:
        db_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_async_engine(
        settings.database_url,
        echo=settings.debug,
    )
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine, session_factory


@asynccontextmanager
async def open_catalog(settings: Settings) -> AsyncIterator[AsyncSession]:
    """Session on a store whose tables exist. The engine is disposed on exit."""
    from mcpcatalog.services.catalog_service import ensure_tables

    engine, session_factory = create_engine(settings)
    try:
        async with session_factory() as session:
            await ensure_tables(session)
            yield session
    finally:
        await engine.dispose()
