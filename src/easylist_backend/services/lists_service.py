from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.config import settings
from easylist_backend.domain.filters import Filters, Metadata
from easylist_backend.errors import RecordNotFoundError, ValidationFailedError
from easylist_backend.models import Folder, Item, ItemList, User
from easylist_backend.repositories import items_repo, lists_repo
from easylist_backend.repositories.folders_repo import folders, get_default_folder
from easylist_backend.repositories.lists_repo import lists
from easylist_backend.schemas import ListCreateAttributes, ListUpdateAttributes
from easylist_backend.services.store_errors import store_errors_as_http
from easylist_backend.validators import attr

LIST_EMAIL_TEMPLATE = "list_email.tmpl"
LIST_EMAIL_MAX_ITEMS = 100


@dataclass(frozen=True)
class ListWithIncludes:
    item_list: ItemList
    folder: Folder | None = None
    items: list[Item] | None = None


async def _require_folder(session: AsyncSession, *, user_id: int, folder_id: int) -> Folder:
    try:
        return await folders.get(session, folder_id, user_id=user_id)
    except RecordNotFoundError as exc:
        raise ValidationFailedError({attr("folder_id"): "this folder does not exists"}) from exc


async def create_list(
    session: AsyncSession, *, user_id: int, attrs: ListCreateAttributes
) -> ItemList:
    with store_errors_as_http():
        if attrs.folder_id is None:
            folder = await get_default_folder(session, user_id=user_id)
            if folder is None:
                raise ValidationFailedError({attr("folder_id"): "this folder does not exists"})
        else:
            folder = await _require_folder(session, user_id=user_id, folder_id=attrs.folder_id)

        item_list = ItemList(
            user_id=user_id,
            folder_id=int(folder.id or 0),
            name=attrs.name,
            icon=attrs.icon,
        )
        return await lists.insert(session, item_list)


async def get_list(session: AsyncSession, *, user_id: int, list_id: int) -> ItemList:
    with store_errors_as_http():
        return await lists.get(session, list_id, user_id=user_id)


async def get_list_with_includes(
    session: AsyncSession,
    *,
    user_id: int,
    list_id: int,
    includes: set[str],
    item_filters: Filters,
) -> ListWithIncludes:
    with store_errors_as_http():
        item_list = await lists.get(session, list_id, user_id=user_id)
        folder = None
        items = None
        if "folder" in includes:
            folder = await folders.get(session, item_list.folder_id, user_id=user_id)
        if "items" in includes:
            items, _ = await items_repo.list_items(
                session, user_id=user_id, name="", filters=item_filters, item_list=item_list
            )
        return ListWithIncludes(item_list=item_list, folder=folder, items=items)


async def list_lists(
    session: AsyncSession,
    *,
    user_id: int,
    name: str,
    filters: Filters,
    folder_id: int | None = None,
) -> tuple[list[ItemList], Metadata]:
    with store_errors_as_http():
        folder = None
        if folder_id is not None:
            folder = await folders.get(session, folder_id, user_id=user_id)
        return await lists_repo.list_lists(
            session, user_id=user_id, name=name, filters=filters, folder=folder
        )


async def update_list(
    session: AsyncSession,
    *,
    user_id: int,
    list_id: int,
    attrs: ListUpdateAttributes,
    expected_version: int | None = None,
) -> ItemList:
    with store_errors_as_http():
        item_list = await lists.get(session, list_id, user_id=user_id)
        old_order = item_list.order
        old_scope = lists.scope_of(item_list)

        changed = set(attrs.model_fields_set)
        if "name" in changed and attrs.name is not None:
            item_list.name = attrs.name
        if "icon" in changed and attrs.icon is not None:
            item_list.icon = attrs.icon
        if "order" in changed and attrs.order is not None:
            item_list.order = attrs.order
        if "folder_id" in changed and attrs.folder_id is not None:
            if attrs.folder_id != item_list.folder_id:
                _ = await _require_folder(session, user_id=user_id, folder_id=attrs.folder_id)
            item_list.folder_id = attrs.folder_id

        if attrs.is_public is True and item_list.link is None:
            item_list.link = str(uuid.uuid4())
        elif attrs.is_public is False:
            item_list.link = None

        await lists.update(
            session,
            item_list,
            old_order,
            old_scope=old_scope,
            expected_version=attrs.version or expected_version,
        )
        return item_list


async def delete_list(session: AsyncSession, *, user_id: int, list_id: int) -> None:
    with store_errors_as_http():
        covers = await items_repo.cover_keys(session, user_id=user_id, list_id=list_id)
        _ = await lists.delete(session, list_id, user_id=user_id)
    await items_repo.remove_covers(covers)


async def build_list_email(
    session: AsyncSession, *, user: User, list_id: int
) -> dict[str, object]:
    """Template data for mailing a list together with its first items."""
    user_id = int(user.id or 0)
    with store_errors_as_http():
        item_list = await lists.get(session, list_id, user_id=user_id)
        items, _ = await items_repo.list_items(
            session,
            user_id=user_id,
            name="",
            filters=Filters(size=LIST_EMAIL_MAX_ITEMS, sort_safelist=items_repo.items.sort_safelist),
            item_list=item_list,
        )
    return {
        "user": {"name": user.name, "email": user.email},
        "list": {"id": item_list.id, "name": item_list.name, "icon": item_list.icon},
        "items": [
            {
                "name": i.name,
                "quantity": i.quantity,
                "quantity_type": i.quantity_type,
                "price": i.price,
                "is_starred": i.is_starred,
            }
            for i in items
        ],
        "logo": settings.mail_logo_url,
        "domain": settings.domain,
    }
