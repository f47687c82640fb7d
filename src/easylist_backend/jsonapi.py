from __future__ import annotations

from collections.abc import Sequence

from fastapi.responses import JSONResponse

from easylist_backend.config import settings
from easylist_backend.domain.filters import Metadata
from easylist_backend.models import Folder, Item, ItemList, User
from easylist_backend.schemas import (
    JSONAPI_MEDIA_TYPE,
    CollectionOut,
    FolderAttributes,
    ItemAttributes,
    ListAttributes,
    PaginationLinks,
    Relationship,
    ResourceIdentifier,
    ResourceOut,
    UserAttributes,
)


class JsonApiResponse(JSONResponse):
    media_type = JSONAPI_MEDIA_TYPE


def resource_url(type_: str, row_id: int | None) -> str:
    return settings.public_url(f"{settings.api_prefix.rstrip('/')}/{type_}/{row_id}")


def user_resource(user: User) -> ResourceOut:
    attrs = UserAttributes.model_validate(user, from_attributes=True)
    return ResourceOut(
        type="users",
        id=str(user.id),
        attributes=attrs.model_dump(mode="json"),
        links={"self": resource_url("users", user.id)},
    )


def folder_resource(folder: Folder) -> ResourceOut:
    attrs = FolderAttributes.model_validate(folder, from_attributes=True)
    return ResourceOut(
        type="folders",
        id=str(folder.id),
        attributes=attrs.model_dump(mode="json"),
        links={"self": resource_url("folders", folder.id)},
    )


def list_resource(
    item_list: ItemList,
    *,
    folder: Folder | None = None,
    items: Sequence[Item] | None = None,
) -> ResourceOut:
    attrs = ListAttributes(
        folder_id=item_list.folder_id,
        name=item_list.name,
        icon=item_list.icon,
        link=item_list.link,
        is_public=item_list.link is not None,
        order=item_list.order,
        version=item_list.version,
        created_at=item_list.created_at,
        updated_at=item_list.updated_at,
    )
    relationships: dict[str, Relationship] = {}
    if folder is not None:
        relationships["folder"] = Relationship(
            data=ResourceIdentifier(type="folders", id=str(folder.id))
        )
    if items is not None:
        relationships["items"] = Relationship(
            data=[ResourceIdentifier(type="items", id=str(i.id)) for i in items]
        )
    return ResourceOut(
        type="lists",
        id=str(item_list.id),
        attributes=attrs.model_dump(mode="json"),
        relationships=relationships or None,
        links={"self": resource_url("lists", item_list.id)},
    )


def item_resource(item: Item) -> ResourceOut:
    attrs = ItemAttributes.model_validate(item, from_attributes=True)
    return ResourceOut(
        type="items",
        id=str(item.id),
        attributes=attrs.model_dump(mode="json"),
        links={"self": resource_url("items", item.id)},
    )


def _page_link(base: str, page: int, size: int) -> str | None:
    if page <= 0:
        return None
    return f"{base}?page[number]={page}&page[size]={size}"


def collection_document(
    resources: list[ResourceOut], meta: Metadata, *, type_: str
) -> CollectionOut:
    """Paginated collection; ``meta.parent_*`` nests the links under the parent resource."""
    prefix = settings.api_prefix.rstrip("/")
    if meta.parent_id:
        base = settings.public_url(f"{prefix}/{meta.parent_name}/{meta.parent_id}/{type_}")
    else:
        base = settings.public_url(f"{prefix}/{type_}")

    links = PaginationLinks(
        first=_page_link(base, meta.first_page, meta.page_size),
        prev=_page_link(base, meta.prev_page, meta.page_size),
        next=_page_link(base, meta.next_page, meta.page_size),
        last=_page_link(base, meta.last_page, meta.page_size),
    )
    return CollectionOut(
        data=resources,
        links=links,
        meta={
            "total": meta.total_records,
            "current_page": meta.current_page,
            "page_size": meta.page_size,
            "last_page": meta.last_page,
        },
    )
