from __future__ import annotations

from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.domain.filters import Filters, Metadata
from easylist_backend.models import Folder, ItemList
from easylist_backend.repositories.ordered_repo import OrderedRepository
from easylist_backend.validators import validate_list

# Lists rank per folder of one user.
lists = OrderedRepository(
    ItemList,
    scope_fields=("user_id", "folder_id"),
    mutable_fields=("name", "icon", "folder_id", "link"),
    validate=validate_list,
    sort_columns=("folder_id",),
    parent=Folder,
)


async def list_lists(
    session: AsyncSession,
    *,
    user_id: int,
    name: str,
    filters: Filters,
    folder: Folder | None = None,
) -> tuple[list[ItemList], Metadata]:
    if folder is None:
        return await lists.get_all(session, user_id=user_id, filters=filters, name=name)

    return await lists.get_all(
        session,
        user_id=user_id,
        filters=filters,
        name=name,
        where=[ItemList.folder_id == folder.id],
        parent_id=int(folder.id or 0),
        parent_name="folders",
    )
