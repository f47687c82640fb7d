from __future__ import annotations

from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.config import settings
from easylist_backend.db_urls import ensure_sqlite_parent_dir, normalize_database_url_for_async


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:  # type: ignore[no-untyped-def]
    # Cascading deletes (folder -> lists -> items) need this on SQLite.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _create_async_engine(database_url: str) -> AsyncEngine:
    ensure_sqlite_parent_dir(database_url)
    url = normalize_database_url_for_async(database_url)
    engine = create_async_engine(url, echo=False, pool_pre_ping=True)
    if url.startswith("sqlite"):
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


@lru_cache(maxsize=4)
def get_engine() -> AsyncEngine:
    # Tests override settings.database_url and then call reset_engine_cache().
    return _create_async_engine(settings.database_url)


def reset_engine_cache() -> None:
    get_engine.cache_clear()


def dispose_engine_cache() -> None:
    # Sync disposal for shutdown paths that have no running event loop.
    if get_engine.cache_info().currsize == 0:
        return
    engine = get_engine()
    engine.sync_engine.dispose()
    get_engine.cache_clear()


async def init_db() -> None:
    # Local/test bootstrap only; production schemas come from Alembic.
    from easylist_backend import models  # noqa: F401

    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


def _session_maker() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    async with _session_maker()() as session:
        yield session


async def get_session() -> AsyncIterator[AsyncSession]:
    async with _session_maker()() as session:
        yield session
