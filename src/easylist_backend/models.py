# basedpyright: reportAssignmentType=false
# basedpyright: reportIncompatibleVariableOverride=false

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Index, LargeBinary, Text
from sqlmodel import Field, SQLModel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    __tablename__ = "users"  # pyright: ignore[reportAssignmentType,reportIncompatibleVariableOverride]

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(min_length=1, max_length=500)
    email: str = Field(index=True, unique=True, min_length=1, max_length=255)
    password_hash: str = Field(min_length=1, max_length=255)
    is_active: bool = Field(default=False, index=True)
    version: int = Field(default=1)
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)


class Token(SQLModel, table=True):
    __tablename__ = "tokens"  # pyright: ignore[reportAssignmentType,reportIncompatibleVariableOverride]

    # sha256 of the plaintext token; the plaintext is only shown once.
    hash: bytes = Field(sa_column=Column(LargeBinary(32), primary_key=True))
    user_id: int = Field(index=True, foreign_key="users.id", ondelete="CASCADE")
    scope: str = Field(index=True, max_length=50)
    expired_at: datetime = Field(index=True)


class OrderedRow(SQLModel):
    """Columns shared by every ordered entity.

    ``order`` ranks the row inside its scope; ``version`` guards concurrent edits.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True, foreign_key="users.id", ondelete="CASCADE")
    order: int = Field(default=0)
    version: int = Field(default=1)
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)


class Folder(OrderedRow, table=True):
    __tablename__ = "folders"  # pyright: ignore[reportAssignmentType,reportIncompatibleVariableOverride]
    __table_args__ = (Index("ix_folders_user_id_order", "user_id", "order"),)

    name: str = Field(max_length=500)
    icon: str = Field(max_length=100)


class ItemList(OrderedRow, table=True):
    __tablename__ = "lists"  # pyright: ignore[reportAssignmentType,reportIncompatibleVariableOverride]
    __table_args__ = (Index("ix_lists_user_id_folder_id_order", "user_id", "folder_id", "order"),)

    folder_id: int = Field(index=True, foreign_key="folders.id", ondelete="CASCADE")
    name: str = Field(max_length=500)
    icon: str = Field(max_length=100)
    # Public share token; NULL means the list is private.
    link: Optional[str] = Field(default=None, max_length=36, unique=True)


class Item(OrderedRow, table=True):
    __tablename__ = "items"  # pyright: ignore[reportAssignmentType,reportIncompatibleVariableOverride]
    __table_args__ = (Index("ix_items_user_id_list_id_order", "user_id", "list_id", "order"),)

    list_id: int = Field(index=True, foreign_key="lists.id", ondelete="CASCADE")
    name: str = Field(max_length=500)
    description: str = Field(default="", sa_column=Column(Text, nullable=False, server_default=""))
    quantity: int = Field(default=0)
    quantity_type: str = Field(default="", max_length=50)
    price: float = Field(default=0.0)
    is_starred: bool = Field(default=False)
    # Storage key of the attached cover image.
    file: Optional[str] = Field(default=None, max_length=255)
