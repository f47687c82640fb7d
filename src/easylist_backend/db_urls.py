from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote

_SQLITE_ASYNC = "sqlite+aiosqlite://"
_PG_PSYCOPG = "postgresql+psycopg://"


def _pin_postgres_driver(url: str) -> str:
    # psycopg 3 serves both the async runtime engine and the sync Alembic engine.
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://") :]
    if url.startswith("postgresql://"):
        return _PG_PSYCOPG + url[len("postgresql://") :]
    if url.startswith("postgresql+psycopg2://"):
        return url.replace("postgresql+psycopg2://", _PG_PSYCOPG, 1)
    return url


def normalize_database_url_for_async(database_url: str) -> str:
    """Return DATABASE_URL rewritten for the async runtime engine.

    - ``sqlite://...`` becomes ``sqlite+aiosqlite://...``
    - ``postgres://`` / ``postgresql://`` become ``postgresql+psycopg://``
    """
    url = (database_url or "").strip()
    if not url:
        return url
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", _SQLITE_ASYNC, 1)
    return _pin_postgres_driver(url)


def normalize_database_url_for_alembic(database_url: str) -> str:
    """Return DATABASE_URL rewritten for Alembic's synchronous engine."""
    url = (database_url or "").strip()
    if not url:
        return url
    if url.startswith(_SQLITE_ASYNC):
        return url.replace(_SQLITE_ASYNC, "sqlite://", 1)
    return _pin_postgres_driver(url)


def extract_sqlite_db_file_path(database_url: str) -> Path | None:
    """Best-effort local file path of a SQLite DATABASE_URL.

    Returns None for in-memory databases and non-SQLite URLs.
    """
    url = (database_url or "").strip().split("#", 1)[0].split("?", 1)[0]
    if not url.lower().startswith("sqlite") or url.lower().endswith(":memory:"):
        return None

    sep = url.find("://")
    if sep == -1:
        return None

    # sqlite:///./rel.db -> "/./rel.db"; sqlite:////abs.db -> "//abs.db"
    rest = url[sep + 3 :]
    file_path = unquote(rest[1:] if rest.startswith("/") else rest)
    if not file_path or file_path == ":memory:":
        return None
    return Path(file_path)


def ensure_sqlite_parent_dir(database_url: str) -> None:
    path = extract_sqlite_db_file_path(database_url)
    if path is None or str(path.parent) in {"", "."}:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
