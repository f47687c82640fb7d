from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, cast

from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.domain.filters import Filters, Metadata
from easylist_backend.integrations.storage.object_storage import get_object_storage
from easylist_backend.models import Item, ItemList
from easylist_backend.repositories.ordered_repo import OrderedRepository
from easylist_backend.validators import validate_item

logger = logging.getLogger(__name__)


async def remove_covers(keys: Iterable[str]) -> None:
    storage = get_object_storage()
    for key in keys:
        try:
            await storage.delete(key)
        except OSError:
            # The rows are already deleted; the file stays orphaned.
            logger.warning("cover cleanup failed key=%s", key, exc_info=True)


async def _remove_cover(item: Item) -> None:
    if item.file:
        await remove_covers([item.file])


# Items rank per list of one user.
items = OrderedRepository(
    Item,
    scope_fields=("user_id", "list_id"),
    mutable_fields=(
        "list_id",
        "name",
        "description",
        "quantity",
        "quantity_type",
        "price",
        "is_starred",
        "file",
    ),
    validate=validate_item,
    sort_columns=("list_id",),
    after_delete=_remove_cover,
    parent=ItemList,
)


async def list_items(
    session: AsyncSession,
    *,
    user_id: int,
    name: str,
    filters: Filters,
    item_list: ItemList | None = None,
    is_starred: bool | None = None,
) -> tuple[list[Item], Metadata]:
    where: list[ColumnElement[bool]] = []
    if item_list is not None:
        where.append(Item.list_id == item_list.id)
    if is_starred is not None:
        where.append(Item.is_starred == is_starred)

    return await items.get_all(
        session,
        user_id=user_id,
        filters=filters,
        name=name,
        where=where,
        parent_id=int(item_list.id or 0) if item_list is not None else 0,
        parent_name="lists" if item_list is not None else "",
    )


async def cover_keys(
    session: AsyncSession,
    *,
    user_id: int,
    list_id: int | None = None,
    folder_id: int | None = None,
) -> list[str]:
    """Cover file keys of the items in one list, or in every list of one folder."""
    stmt = (
        select(Item.file)
        .where(Item.user_id == user_id)
        .where(cast(Any, Item.file).is_not(None))
    )
    if list_id is not None:
        stmt = stmt.where(Item.list_id == list_id)
    if folder_id is not None:
        stmt = stmt.join(ItemList, cast(Any, ItemList.id) == Item.list_id).where(
            ItemList.folder_id == folder_id
        )

    async def _read() -> list[str]:
        return [key for key in (await session.exec(stmt)).all() if key]

    return await items.with_deadline("cover_keys", _read)
