from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.db import get_session
from easylist_backend.models import User, utc_now
from easylist_backend.repositories.users_repo import get_user_for_token
from easylist_backend.security import SCOPE_AUTHENTICATION

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    # Use a dedicated session for auth so services can own tx boundaries
    # on a separate request-scoped session.
    session: AsyncSession = Depends(get_session, use_cache=False),
) -> User:
    raw_token = creds.credentials.strip() if creds is not None else ""
    if not raw_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="you must be authenticated to access this resource",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await get_user_for_token(
        session, scope=SCOPE_AUTHENTICATION, plaintext=raw_token, now=utc_now()
    )
    if user is None or user.id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid or missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="your user account must be activated to access this resource",
        )

    request.state.auth_user_id = int(user.id)
    return user


def require_user_id(user: User) -> int:
    if user.id is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="user missing id",
        )
    return int(user.id)
