from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.errors import RecordNotFoundError, ValidationFailedError
from easylist_backend.models import Folder, User
from easylist_backend.repositories import items_repo, users_repo
from easylist_backend.repositories.users_repo import get_user_by_email
from easylist_backend.schemas import UserCreateAttributes, UserUpdateAttributes
from easylist_backend.security import generate_token, hash_password
from easylist_backend.services.folders_service import create_default_folder
from easylist_backend.services.store_errors import store_errors_as_http
from easylist_backend.validators import attr, check_password, validate_user

DEFAULT_TOKEN_TTL = timedelta(days=30)
DUPLICATE_EMAIL = "a user with this email address already exists"


@dataclass(frozen=True)
class ProvisionedUser:
    user: User
    folder: Folder
    token: str


async def _email_taken(session: AsyncSession, *, email: str, user_id: int | None = None) -> bool:
    found = await get_user_by_email(session, email=email)
    return found is not None and found.id != user_id


async def _create_user(session: AsyncSession, *, name: str, email: str, password: str) -> User:
    user = User(name=name, email=email, password_hash="", is_active=True)
    errors = validate_user(user)
    check_password(errors, password)
    if attr("email") not in errors and await _email_taken(session, email=email):
        errors[attr("email")] = DUPLICATE_EMAIL
    if errors:
        raise ValidationFailedError(errors)

    user.password_hash = hash_password(password)
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        # Lost a race on the unique email index.
        await session.rollback()
        raise ValidationFailedError({attr("email"): DUPLICATE_EMAIL}) from exc
    await session.refresh(user)
    return user


async def provision_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    password: str,
    token_ttl: timedelta = DEFAULT_TOKEN_TTL,
) -> ProvisionedUser:
    """Create an active user with its default folder and an authentication token."""
    try:
        user = await _create_user(session, name=name, email=email, password=password)
    except ValidationFailedError as exc:
        raise ValueError(str(exc)) from exc
    user_id = int(user.id or 0)

    plaintext, token = generate_token(user_id=user_id, ttl=token_ttl)
    session.add(token)
    await session.commit()

    folder = await create_default_folder(session, user_id=user_id)
    return ProvisionedUser(user=user, folder=folder, token=plaintext)


async def register_user(session: AsyncSession, *, attrs: UserCreateAttributes) -> User:
    """Sign up an active user with its default folder; tokens are issued elsewhere."""
    with store_errors_as_http():
        user = await _create_user(
            session, name=attrs.name, email=attrs.email, password=attrs.password
        )
        _ = await create_default_folder(session, user_id=int(user.id or 0))
    return user


async def update_user(
    session: AsyncSession,
    *,
    user_id: int,
    attrs: UserUpdateAttributes,
    expected_version: int | None = None,
) -> User:
    with store_errors_as_http():
        user = await users_repo.get_user(session, user_id=user_id)
        if user is None:
            raise RecordNotFoundError()
        guard_version = attrs.version or expected_version or user.version

        changed = set(attrs.model_fields_set)
        if "name" in changed and attrs.name is not None:
            user.name = attrs.name
        if "email" in changed and attrs.email is not None:
            user.email = attrs.email

        errors = validate_user(user)
        if "password" in changed and attrs.password is not None:
            check_password(errors, attrs.password)
        if attr("email") not in errors and await _email_taken(
            session, email=user.email, user_id=user_id
        ):
            errors[attr("email")] = DUPLICATE_EMAIL
        if errors:
            raise ValidationFailedError(errors)
        if "password" in changed and attrs.password is not None:
            user.password_hash = hash_password(attrs.password)

        try:
            await users_repo.update_user(session, user, expected_version=guard_version)
        except IntegrityError as exc:
            raise ValidationFailedError({attr("email"): DUPLICATE_EMAIL}) from exc
        return user


async def delete_user(session: AsyncSession, *, user_id: int) -> None:
    with store_errors_as_http():
        covers = await items_repo.cover_keys(session, user_id=user_id)
        if not await users_repo.delete_user(session, user_id=user_id):
            raise RecordNotFoundError()
    await items_repo.remove_covers(covers)
