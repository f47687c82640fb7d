"""JSON:API request and response documents."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

JSONAPI_MEDIA_TYPE = "application/vnd.api+json"

AttrT = TypeVar("AttrT", bound=BaseModel)


class ResourceIn(BaseModel, Generic[AttrT]):
    id: str | None = None
    type: str
    attributes: AttrT


class DocumentIn(BaseModel, Generic[AttrT]):
    data: ResourceIn[AttrT]


# -- users -------------------------------------------------------------------


class UserCreateAttributes(BaseModel):
    name: str = ""
    email: str = ""
    password: str = ""


class UserUpdateAttributes(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    version: int | None = Field(default=None, ge=1)


class UserAttributes(BaseModel):
    name: str
    email: str
    is_active: bool
    version: int
    created_at: datetime
    updated_at: datetime


# -- folders -----------------------------------------------------------------


class FolderCreateAttributes(BaseModel):
    name: str = ""
    icon: str = ""


class FolderUpdateAttributes(BaseModel):
    name: str | None = None
    icon: str | None = None
    order: int | None = None
    version: int | None = Field(default=None, ge=1)


class FolderAttributes(BaseModel):
    name: str
    icon: str
    order: int
    version: int
    created_at: datetime
    updated_at: datetime


# -- lists -------------------------------------------------------------------


class ListCreateAttributes(BaseModel):
    name: str = ""
    icon: str = ""
    folder_id: int | None = None


class ListUpdateAttributes(BaseModel):
    name: str | None = None
    icon: str | None = None
    order: int | None = None
    folder_id: int | None = None
    is_public: bool | None = None
    version: int | None = Field(default=None, ge=1)


class ListAttributes(BaseModel):
    folder_id: int
    name: str
    icon: str
    link: str | None = None
    is_public: bool
    order: int
    version: int
    created_at: datetime
    updated_at: datetime


class EmailAttributes(BaseModel):
    email: str = Field(min_length=3, max_length=255)


# -- items -------------------------------------------------------------------


class ItemCreateAttributes(BaseModel):
    list_id: int | None = None
    name: str = ""
    description: str = ""
    quantity: int = 0
    quantity_type: str = ""
    price: float = 0.0
    is_starred: bool = False
    # Base64 encoded cover image.
    file: str | None = None


class ItemUpdateAttributes(BaseModel):
    list_id: int | None = None
    name: str | None = None
    description: str | None = None
    quantity: int | None = None
    quantity_type: str | None = None
    price: float | None = None
    is_starred: bool | None = None
    file: str | None = None
    order: int | None = None
    version: int | None = Field(default=None, ge=1)


class ItemAttributes(BaseModel):
    list_id: int
    name: str
    description: str
    quantity: int
    quantity_type: str
    price: float
    is_starred: bool
    file: str | None = None
    order: int
    version: int
    created_at: datetime
    updated_at: datetime


# -- documents ---------------------------------------------------------------


class ResourceIdentifier(BaseModel):
    type: str
    id: str


class Relationship(BaseModel):
    data: ResourceIdentifier | list[ResourceIdentifier] | None = None


class ResourceOut(BaseModel):
    type: str
    id: str
    attributes: dict[str, Any]
    relationships: dict[str, Relationship] | None = None
    links: dict[str, str] | None = None


class PaginationLinks(BaseModel):
    first: str | None = None
    prev: str | None = None
    next: str | None = None
    last: str | None = None


class DocumentOut(BaseModel):
    data: ResourceOut
    included: list[ResourceOut] | None = None


class CollectionOut(BaseModel):
    data: list[ResourceOut]
    links: PaginationLinks
    meta: dict[str, int]


class ErrorObject(BaseModel):
    status: str
    title: str
    detail: str
    source: dict[str, str] | None = None


class ErrorDocument(BaseModel):
    errors: list[ErrorObject]
    meta: dict[str, str] | None = None
