from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.db import get_session
from easylist_backend.deps import get_current_user, require_user_id
from easylist_backend.jsonapi import (
    JsonApiResponse,
    collection_document,
    folder_resource,
    resource_url,
)
from easylist_backend.models import User
from easylist_backend.repositories.folders_repo import folders
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
    FolderCreateAttributes,
    FolderUpdateAttributes,
)
from easylist_backend.services import folders_service

router = APIRouter(tags=["folders"], default_response_class=JsonApiResponse)


@router.get("/folders", response_model=CollectionOut, response_model_exclude_none=True)
async def index_folders(
    q: PageQuery = Depends(page_query),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> CollectionOut:
    user_id = require_user_id(user)
    rows, meta = await folders_service.list_folders(
        session, user_id=user_id, name=q.name, filters=q.filters(folders.sort_safelist)
    )
    return collection_document([folder_resource(r) for r in rows], meta, type_="folders")


@router.post(
    "/folders",
    response_model=DocumentOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_folder(
    payload: DocumentIn[FolderCreateAttributes],
    response: Response,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DocumentOut:
    require_type(payload.data.type, "folders")
    folder = await folders_service.create_folder(
        session, user_id=require_user_id(user), attrs=payload.data.attributes
    )
    response.headers["Location"] = resource_url("folders", folder.id)
    return DocumentOut(data=folder_resource(folder))


@router.get("/folders/{folder_id}", response_model=DocumentOut, response_model_exclude_none=True)
async def show_folder(
    folder_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DocumentOut:
    folder = await folders_service.get_folder(
        session, user_id=require_user_id(user), folder_id=folder_id
    )
    return DocumentOut(data=folder_resource(folder))


@router.patch(
    "/folders/{folder_id}", response_model=DocumentOut, response_model_exclude_none=True
)
async def update_folder(
    folder_id: int,
    payload: DocumentIn[FolderUpdateAttributes],
    expected_version: int | None = Depends(expected_version_header),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DocumentOut:
    require_type(payload.data.type, "folders")
    folder = await folders_service.update_folder(
        session,
        user_id=require_user_id(user),
        folder_id=folder_id,
        attrs=payload.data.attributes,
        expected_version=expected_version,
    )
    return DocumentOut(data=folder_resource(folder))


@router.delete("/folders/{folder_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_folder(
    folder_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Response:
    await folders_service.delete_folder(
        session, user_id=require_user_id(user), folder_id=folder_id
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
