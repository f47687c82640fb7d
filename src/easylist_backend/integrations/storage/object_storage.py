from __future__ import annotations

import uuid
from typing import Protocol

from easylist_backend.config import settings

COVERS_PREFIX = "covers"


class ObjectStorage(Protocol):
    async def put_bytes(
        self, key: str, data: bytes, *, content_type: str | None = None
    ) -> None: ...

    async def get_bytes(self, key: str) -> bytes: ...

    async def delete(self, key: str) -> None: ...


def build_cover_storage_key(*, user_id: int, file_id: str | None = None) -> str:
    """Key of an item cover image: ``covers/{user_id}/{file_id}.jpg``.

    A fresh uuid4 is used when ``file_id`` is omitted.
    """
    return f"{COVERS_PREFIX}/{user_id}/{file_id or uuid.uuid4()}.jpg"


def get_object_storage() -> ObjectStorage:
    from easylist_backend.integrations.storage.local_storage import LocalObjectStorage

    return LocalObjectStorage(root_dir=settings.attachments_local_dir)
