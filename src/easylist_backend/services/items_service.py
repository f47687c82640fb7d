from __future__ import annotations

import base64
import binascii
import logging

from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.config import settings
from easylist_backend.domain.filters import Filters, Metadata
from easylist_backend.errors import RecordNotFoundError, ValidationFailedError
from easylist_backend.integrations.storage.object_storage import (
    ObjectStorage,
    build_cover_storage_key,
)
from easylist_backend.models import Item
from easylist_backend.repositories import items_repo
from easylist_backend.repositories.items_repo import items
from easylist_backend.repositories.lists_repo import lists
from easylist_backend.schemas import ItemCreateAttributes, ItemUpdateAttributes
from easylist_backend.services.store_errors import store_errors_as_http
from easylist_backend.validators import attr

logger = logging.getLogger(__name__)


def decode_cover(raw: str) -> bytes:
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationFailedError({attr("file"): "must be base64 encoded"}) from exc
    if not data:
        raise ValidationFailedError({attr("file"): "must not be empty"})
    if len(data) > settings.attachments_max_size_bytes:
        raise ValidationFailedError(
            {attr("file"): f"must not be larger than {settings.attachments_max_size_bytes} bytes"}
        )
    return data


async def _require_list(session: AsyncSession, *, user_id: int, list_id: int | None) -> None:
    if list_id is None:
        raise ValidationFailedError({attr("list_id"): "Can not find current list id"})
    try:
        _ = await lists.get(session, list_id, user_id=user_id)
    except RecordNotFoundError as exc:
        raise ValidationFailedError({attr("list_id"): "Can not find current list id"}) from exc


async def _discard_cover(storage: ObjectStorage, key: str | None) -> None:
    if not key:
        return
    try:
        await storage.delete(key)
    except OSError:
        logger.warning("cover cleanup failed key=%s", key, exc_info=True)


async def create_item(
    session: AsyncSession,
    *,
    user_id: int,
    attrs: ItemCreateAttributes,
    storage: ObjectStorage,
) -> Item:
    with store_errors_as_http():
        await _require_list(session, user_id=user_id, list_id=attrs.list_id)

        item = Item(
            user_id=user_id,
            list_id=int(attrs.list_id or 0),
            name=attrs.name,
            description=attrs.description,
            quantity=attrs.quantity,
            quantity_type=attrs.quantity_type,
            price=attrs.price,
            is_starred=attrs.is_starred,
        )
        items.validate(item)

        cover = decode_cover(attrs.file) if attrs.file else None
        if cover is not None:
            item.file = build_cover_storage_key(user_id=user_id)
            await storage.put_bytes(item.file, cover, content_type="image/jpeg")

        try:
            return await items.insert(session, item)
        except Exception:
            await _discard_cover(storage, item.file)
            raise


async def get_item(session: AsyncSession, *, user_id: int, item_id: int) -> Item:
    with store_errors_as_http():
        return await items.get(session, item_id, user_id=user_id)


async def list_items(
    session: AsyncSession,
    *,
    user_id: int,
    name: str,
    filters: Filters,
    list_id: int | None = None,
    is_starred: bool | None = None,
) -> tuple[list[Item], Metadata]:
    with store_errors_as_http():
        item_list = None
        if list_id is not None:
            item_list = await lists.get(session, list_id, user_id=user_id)
        return await items_repo.list_items(
            session,
            user_id=user_id,
            name=name,
            filters=filters,
            item_list=item_list,
            is_starred=is_starred,
        )


async def update_item(
    session: AsyncSession,
    *,
    user_id: int,
    item_id: int,
    attrs: ItemUpdateAttributes,
    storage: ObjectStorage,
    expected_version: int | None = None,
) -> Item:
    with store_errors_as_http():
        item = await items.get(session, item_id, user_id=user_id)
        old_order = item.order
        old_scope = items.scope_of(item)
        old_file = item.file

        changed = set(attrs.model_fields_set)
        if "list_id" in changed and attrs.list_id is not None and attrs.list_id != item.list_id:
            await _require_list(session, user_id=user_id, list_id=attrs.list_id)
            item.list_id = attrs.list_id
        for field in ("name", "description", "quantity", "quantity_type", "price", "is_starred"):
            value = getattr(attrs, field)
            if field in changed and value is not None:
                setattr(item, field, value)
        if "order" in changed and attrs.order is not None:
            item.order = attrs.order

        items.validate(item, for_update=True)

        new_file: str | None = None
        if attrs.file:
            cover = decode_cover(attrs.file)
            new_file = build_cover_storage_key(user_id=user_id)
            await storage.put_bytes(new_file, cover, content_type="image/jpeg")
            item.file = new_file

        try:
            await items.update(
                session,
                item,
                old_order,
                old_scope=old_scope,
                expected_version=attrs.version or expected_version,
            )
        except Exception:
            await _discard_cover(storage, new_file)
            raise

        if new_file is not None:
            await _discard_cover(storage, old_file)
        return item


async def delete_item(session: AsyncSession, *, user_id: int, item_id: int) -> None:
    with store_errors_as_http():
        _ = await items.delete(session, item_id, user_id=user_id)
