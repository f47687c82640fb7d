from __future__ import annotations

from datetime import datetime
from typing import Any, cast

import sqlalchemy as sa
from sqlalchemy.engine import CursorResult
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.errors import EditConflictError
from easylist_backend.models import Token, User, utc_now
from easylist_backend.security import hash_token


def _rowcount(result: object) -> int:
    return int(cast(CursorResult[Any], result).rowcount or 0)


async def get_user(session: AsyncSession, *, user_id: int) -> User | None:
    found = (await session.exec(select(User).where(User.id == user_id))).first()
    if found is not None:
        # Edits go through update_user only.
        session.expunge(found)
    return found


async def get_user_by_email(session: AsyncSession, *, email: str) -> User | None:
    return (await session.exec(select(User).where(User.email == email))).first()


async def get_user_for_token(
    session: AsyncSession, *, scope: str, plaintext: str, now: datetime
) -> User | None:
    stmt = (
        select(User)
        .join(Token, Token.user_id == User.id)  # pyright: ignore[reportArgumentType]
        .where(Token.hash == hash_token(plaintext))
        .where(Token.scope == scope)
        .where(Token.expired_at > now)
    )
    return (await session.exec(stmt)).first()


async def update_user(session: AsyncSession, user: User, *, expected_version: int) -> None:
    """Write the account fields of ``user`` if its stored version is ``expected_version``."""
    now = utc_now()
    stmt = (
        sa.update(User)
        .where(cast(Any, User.id) == user.id)
        .where(cast(Any, User.version) == expected_version)
        .values(
            name=user.name,
            email=user.email,
            password_hash=user.password_hash,
            version=cast(Any, User.version) + 1,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    try:
        if _rowcount(await session.exec(stmt)) == 0:
            raise EditConflictError(expected_version=expected_version)
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    user.version = expected_version + 1
    user.updated_at = now


async def delete_user(session: AsyncSession, *, user_id: int) -> bool:
    # Tokens, folders, lists and items go with the user through ON DELETE CASCADE.
    stmt = (
        sa.delete(User)
        .where(cast(Any, User.id) == user_id)
        .execution_options(synchronize_session=False)
    )
    try:
        deleted = _rowcount(await session.exec(stmt)) > 0
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    return deleted
