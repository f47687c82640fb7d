from __future__ import annotations

from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.domain.filters import Filters, Metadata
from easylist_backend.models import Folder
from easylist_backend.repositories import folders_repo, items_repo
from easylist_backend.repositories.folders_repo import folders
from easylist_backend.schemas import FolderCreateAttributes, FolderUpdateAttributes
from easylist_backend.services.store_errors import store_errors_as_http

DEFAULT_FOLDER_NAME = "default"
DEFAULT_FOLDER_ICON = "mdi-folder"


async def create_folder(
    session: AsyncSession, *, user_id: int, attrs: FolderCreateAttributes
) -> Folder:
    folder = Folder(user_id=user_id, name=attrs.name, icon=attrs.icon)
    with store_errors_as_http():
        return await folders.insert(session, folder)


async def create_default_folder(session: AsyncSession, *, user_id: int) -> Folder:
    folder = Folder(user_id=user_id, name=DEFAULT_FOLDER_NAME, icon=DEFAULT_FOLDER_ICON)
    return await folders.insert(session, folder)


async def get_folder(session: AsyncSession, *, user_id: int, folder_id: int) -> Folder:
    with store_errors_as_http():
        return await folders.get(session, folder_id, user_id=user_id)


async def list_folders(
    session: AsyncSession, *, user_id: int, name: str, filters: Filters
) -> tuple[list[Folder], Metadata]:
    with store_errors_as_http():
        return await folders_repo.list_folders(
            session, user_id=user_id, name=name, filters=filters
        )


async def update_folder(
    session: AsyncSession,
    *,
    user_id: int,
    folder_id: int,
    attrs: FolderUpdateAttributes,
    expected_version: int | None = None,
) -> Folder:
    with store_errors_as_http():
        folder = await folders.get(session, folder_id, user_id=user_id)
        old_order = folder.order

        changed = set(attrs.model_fields_set)
        if "name" in changed and attrs.name is not None:
            folder.name = attrs.name
        if "icon" in changed and attrs.icon is not None:
            folder.icon = attrs.icon
        if "order" in changed and attrs.order is not None:
            folder.order = attrs.order

        await folders.update(
            session, folder, old_order, expected_version=attrs.version or expected_version
        )
        return folder


async def delete_folder(session: AsyncSession, *, user_id: int, folder_id: int) -> None:
    with store_errors_as_http():
        covers = await items_repo.cover_keys(session, user_id=user_id, folder_id=folder_id)
        _ = await folders.delete(session, folder_id, user_id=user_id)
    await items_repo.remove_covers(covers)
