from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.db import get_session
from easylist_backend.deps import get_current_user, require_user_id
from easylist_backend.jsonapi import JsonApiResponse, resource_url, user_resource
from easylist_backend.models import User
from easylist_backend.routers.params import expected_version_header, require_type
from easylist_backend.schemas import (
    DocumentIn,
    DocumentOut,
    UserCreateAttributes,
    UserUpdateAttributes,
)
from easylist_backend.services import users_service

router = APIRouter(tags=["users"], default_response_class=JsonApiResponse)


def _require_self(user: User, user_id: int) -> int:
    # Accounts are only visible to their owner.
    current = require_user_id(user)
    if current != user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="the requested resource could not be found",
        )
    return current


@router.post(
    "/users",
    response_model=DocumentOut,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def register_user(
    payload: DocumentIn[UserCreateAttributes],
    response: Response,
    session: AsyncSession = Depends(get_session),
) -> DocumentOut:
    require_type(payload.data.type, "users")
    user = await users_service.register_user(session, attrs=payload.data.attributes)
    response.headers["Location"] = resource_url("users", user.id)
    return DocumentOut(data=user_resource(user))


@router.get("/my", response_model=DocumentOut, response_model_exclude_none=True)
async def show_current_user(user: User = Depends(get_current_user)) -> DocumentOut:
    return DocumentOut(data=user_resource(user))


@router.patch("/users/{user_id}", response_model=DocumentOut, response_model_exclude_none=True)
async def update_user(
    user_id: int,
    payload: DocumentIn[UserUpdateAttributes],
    expected_version: int | None = Depends(expected_version_header),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DocumentOut:
    require_type(payload.data.type, "users")
    updated = await users_service.update_user(
        session,
        user_id=_require_self(user, user_id),
        attrs=payload.data.attributes,
        expected_version=expected_version,
    )
    return DocumentOut(data=user_resource(updated))


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> Response:
    await users_service.delete_user(session, user_id=_require_self(user, user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
