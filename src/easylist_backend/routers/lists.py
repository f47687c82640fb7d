from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.db import get_session
from easylist_backend.deps import get_current_user, require_user_id
from easylist_backend.jsonapi import (
    JsonApiResponse,
    collection_document,
    folder_resource,
    item_resource,
    list_resource,
    resource_url,
)
from easylist_backend.mailer import Mailer, get_mailer, send_best_effort
from easylist_backend.models import User
from easylist_backend.repositories.items_repo import items
from easylist_backend.repositories.lists_repo import lists
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
    EmailAttributes,
    ListCreateAttributes,
    ListUpdateAttributes,
    ResourceOut,
)
from easylist_backend.services import lists_service
from easylist_backend.services.store_errors import validation_http_error
from easylist_backend.validators import is_email

router = APIRouter(tags=["lists"], default_response_class=JsonApiResponse)

_ALLOWED_INCLUDES = {"folder", "items"}


@router.get("/lists", response_model=CollectionOut, response_model_exclude_none=True)
async def index_lists(
    q: PageQuery = Depends(page_query),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> CollectionOut:
    rows, meta = await lists_service.list_lists(
        session,
        user_id=require_user_id(user),
        name=q.name,
        filters=q.filters(lists.sort_safelist),
    )
    return collection_document([list_resource(r) for r in rows], meta, type_="lists")


@router.get(
    "/folders/{folder_id}/lists", response_model=CollectionOut, response_model_exclude_none=True
)
async def index_folder_lists(
    folder_id: int,
    q: PageQuery = Depends(page_query),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> CollectionOut:
    rows, meta = await lists_service.list_lists(
        session,
        user_id=require_user_id(user),
        name=q.name,
        filters=q.filters(lists.sort_safelist),
        folder_id=folder_id,
    )
    return collection_document([list_resource(r) for r in rows], meta, type_="lists")


@router.post(
    "/lists",
    response_model=DocumentOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_list(
    payload: DocumentIn[ListCreateAttributes],
    response: Response,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DocumentOut:
    require_type(payload.data.type, "lists")
    item_list = await lists_service.create_list(
        session, user_id=require_user_id(user), attrs=payload.data.attributes
    )
    response.headers["Location"] = resource_url("lists", item_list.id)
    return DocumentOut(data=list_resource(item_list))


@router.get("/lists/{list_id}", response_model=DocumentOut, response_model_exclude_none=True)
async def show_list(
    list_id: int,
    q: PageQuery = Depends(page_query),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DocumentOut:
    includes = set(q.includes)
    unknown = includes - _ALLOWED_INCLUDES
    if unknown:
        raise validation_http_error(
            {"include": "unsupported include: " + ",".join(sorted(unknown))}
        )

    # Pagination and sort parameters apply to the included items.
    found = await lists_service.get_list_with_includes(
        session,
        user_id=require_user_id(user),
        list_id=list_id,
        includes=includes,
        item_filters=q.filters(items.sort_safelist),
    )
    included: list[ResourceOut] = []
    if found.folder is not None:
        included.append(folder_resource(found.folder))
    if found.items is not None:
        included.extend(item_resource(i) for i in found.items)
    return DocumentOut(
        data=list_resource(found.item_list, folder=found.folder, items=found.items),
        included=included or None,
    )


@router.patch("/lists/{list_id}", response_model=DocumentOut, response_model_exclude_none=True)
async def update_list(
    list_id: int,
    payload: DocumentIn[ListUpdateAttributes],
    expected_version: int | None = Depends(expected_version_header),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DocumentOut:
    require_type(payload.data.type, "lists")
    item_list = await lists_service.update_list(
        session,
        user_id=require_user_id(user),
        list_id=list_id,
        attrs=payload.data.attributes,
        expected_version=expected_version,
    )
    return DocumentOut(data=list_resource(item_list))


@router.delete("/lists/{list_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_list(
    list_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Response:
    await lists_service.delete_list(session, user_id=require_user_id(user), list_id=list_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/lists/{list_id}/email", status_code=status.HTTP_204_NO_CONTENT)
async def email_list(
    list_id: int,
    payload: DocumentIn[EmailAttributes],
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    mailer: Mailer = Depends(get_mailer),
) -> Response:
    recipient = payload.data.attributes.email.strip()
    if not is_email(recipient):
        raise validation_http_error({"data.attributes.email": "must be a valid email address"})

    data = await lists_service.build_list_email(session, user=user, list_id=list_id)
    background_tasks.add_task(
        send_best_effort, mailer, recipient, lists_service.LIST_EMAIL_TEMPLATE, data
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
