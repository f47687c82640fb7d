from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.db import get_session
from easylist_backend.deps import get_current_user, require_user_id
from easylist_backend.integrations.storage.object_storage import (
    ObjectStorage,
    get_object_storage,
)
from easylist_backend.jsonapi import (
    JsonApiResponse,
    collection_document,
    item_resource,
    resource_url,
)
from easylist_backend.models import User
from easylist_backend.repositories.items_repo import items
from easylist_backend.routers.params import (
    PageQuery,
    expected_version_header,
    page_query,
    require_type,
)
from easylist_backend.schemas import (
    CollectionOut,
    DocumentIn,
    DocumentOut,
    ItemCreateAttributes,
    ItemUpdateAttributes,
)
from easylist_backend.services import items_service

router = APIRouter(tags=["items"], default_response_class=JsonApiResponse)


@router.get("/items", response_model=CollectionOut, response_model_exclude_none=True)
async def index_items(
    q: PageQuery = Depends(page_query),
    is_starred: Annotated[bool | None, Query(alias="filter[is_starred]")] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> CollectionOut:
    rows, meta = await items_service.list_items(
        session,
        user_id=require_user_id(user),
        name=q.name,
        filters=q.filters(items.sort_safelist),
        is_starred=is_starred,
    )
    return collection_document([item_resource(r) for r in rows], meta, type_="items")


@router.get(
    "/lists/{list_id}/items", response_model=CollectionOut, response_model_exclude_none=True
)
async def index_list_items(
    list_id: int,
    q: PageQuery = Depends(page_query),
    is_starred: Annotated[bool | None, Query(alias="filter[is_starred]")] = None,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> CollectionOut:
    rows, meta = await items_service.list_items(
        session,
        user_id=require_user_id(user),
        name=q.name,
        filters=q.filters(items.sort_safelist),
        list_id=list_id,
        is_starred=is_starred,
    )
    return collection_document([item_resource(r) for r in rows], meta, type_="items")


@router.post(
    "/items",
    response_model=DocumentOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_item(
    payload: DocumentIn[ItemCreateAttributes],
    response: Response,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    storage: ObjectStorage = Depends(get_object_storage),
) -> DocumentOut:
    require_type(payload.data.type, "items")
    item = await items_service.create_item(
        session, user_id=require_user_id(user), attrs=payload.data.attributes, storage=storage
    )
    response.headers["Location"] = resource_url("items", item.id)
    return DocumentOut(data=item_resource(item))


@router.get("/items/{item_id}", response_model=DocumentOut, response_model_exclude_none=True)
async def show_item(
    item_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DocumentOut:
    item = await items_service.get_item(session, user_id=require_user_id(user), item_id=item_id)
    return DocumentOut(data=item_resource(item))


@router.patch("/items/{item_id}", response_model=DocumentOut, response_model_exclude_none=True)
async def update_item(
    item_id: int,
    payload: DocumentIn[ItemUpdateAttributes],
    expected_version: int | None = Depends(expected_version_header),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    storage: ObjectStorage = Depends(get_object_storage),
) -> DocumentOut:
    require_type(payload.data.type, "items")
    item = await items_service.update_item(
        session,
        user_id=require_user_id(user),
        item_id=item_id,
        attrs=payload.data.attributes,
        storage=storage,
        expected_version=expected_version,
    )
    return DocumentOut(data=item_resource(item))


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Response:
    await items_service.delete_item(session, user_id=require_user_id(user), item_id=item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
