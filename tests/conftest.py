from __future__ import annotations

import inspect
from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest

from easylist_backend.config import settings
from easylist_backend.db import dispose_engine_cache, get_engine, init_db, reset_engine_cache
from easylist_backend.db import session_scope
from easylist_backend.services.users_service import ProvisionedUser, provision_user


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
async def _dispose_engine_cache_per_test(  # pyright: ignore[reportUnusedFunction]
    anyio_backend: object,  # noqa: ARG001
) -> AsyncGenerator[None, None]:
    # Dispose the cached AsyncEngine (aiosqlite worker thread) while the
    # per-test event loop is still alive.
    _ = anyio_backend
    yield

    if get_engine.cache_info().currsize:
        result = get_engine().dispose()
        if inspect.isawaitable(result):
            await result

    dispose_engine_cache()


@pytest.fixture
async def db(tmp_path: Path) -> AsyncGenerator[Path, None]:
    """Fresh SQLite database plus a private cover storage directory."""
    old_db = settings.database_url
    old_storage = settings.attachments_local_dir
    try:
        settings.database_url = f"sqlite:///{tmp_path / 'test.db'}"
        settings.attachments_local_dir = str(tmp_path / "storage")
        reset_engine_cache()
        await init_db()
        yield tmp_path
    finally:
        settings.database_url = old_db
        settings.attachments_local_dir = old_storage


async def make_user(email: str, *, name: str = "Tester") -> ProvisionedUser:
    async with session_scope() as session:
        return await provision_user(session, name=name, email=email, password="pa55word-long")


def make_async_client() -> httpx.AsyncClient:
    from easylist_backend.main import app

    transport = httpx.ASGITransport(app=app)
    return httpx.AsyncClient(transport=transport, base_url="http://test")


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def pytest_sessionfinish(session: object, exitstatus: int) -> None:  # noqa: ARG001
    # Safety net: close cached engine so CI can exit cleanly.
    _ = session, exitstatus
    dispose_engine_cache()
