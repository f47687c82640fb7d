from __future__ import annotations

from typing import Any, cast

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.domain.filters import Filters, Metadata
from easylist_backend.models import Folder, User
from easylist_backend.repositories.ordered_repo import OrderedRepository
from easylist_backend.validators import validate_folder

# Folders rank per user.
folders = OrderedRepository(
    Folder,
    scope_fields=("user_id",),
    mutable_fields=("name", "icon"),
    validate=validate_folder,
    parent=User,
)


async def list_folders(
    session: AsyncSession, *, user_id: int, name: str, filters: Filters
) -> tuple[list[Folder], Metadata]:
    return await folders.get_all(session, user_id=user_id, filters=filters, name=name)


async def get_default_folder(session: AsyncSession, *, user_id: int) -> Folder | None:
    # The first folder created for a user is its default one.
    stmt = (
        select(Folder)
        .where(Folder.user_id == user_id)
        .order_by(cast(Any, Folder.id).asc())
        .limit(1)
    )

    async def _read() -> Folder | None:
        found = (await session.exec(stmt)).first()
        if found is not None:
            session.expunge(found)
        return found

    return await folders.with_deadline("get_default_folder", _read)
