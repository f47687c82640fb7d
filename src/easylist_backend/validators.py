from __future__ import annotations

import re
from typing import Protocol

from easylist_backend.models import Folder, Item, ItemList, User

_MAX_NAME_BYTES = 190
_ICON_PREFIXES = ("fa-", "mdi-")
_MIN_PASSWORD_BYTES = 8
# bcrypt only looks at the first 72 bytes.
_MAX_PASSWORD_BYTES = 72
_EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+\/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


def attr(field: str) -> str:
    """JSON:API error pointer for a resource attribute."""
    return f"data.attributes.{field}"


class _Named(Protocol):
    name: str
    order: int


def _check_name(errors: dict[str, str], name: str) -> None:
    if not name:
        errors[attr("name")] = "must be provided"
    elif len(name.encode("utf-8")) >= _MAX_NAME_BYTES:
        errors[attr("name")] = "must not be more then 190 bytes"


def _check_icon(errors: dict[str, str], icon: str) -> None:
    if not icon:
        errors[attr("icon")] = "must be provided"
    elif not icon.startswith(_ICON_PREFIXES):
        errors[attr("icon")] = "must start with fa- or mdi-"


def check_order(errors: dict[str, str], row: _Named) -> None:
    # Only enforced on update; inserts compute the order themselves.
    if row.order <= 0:
        errors[attr("order")] = "order should be greater then zero"


def validate_folder(folder: Folder) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_name(errors, folder.name)
    _check_icon(errors, folder.icon)
    return errors


def validate_list(item_list: ItemList) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_name(errors, item_list.name)
    _check_icon(errors, item_list.icon)
    if not item_list.folder_id or item_list.folder_id <= 0:
        errors[attr("folder_id")] = "must be provided"
    return errors


def validate_item(item: Item) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_name(errors, item.name)
    if len(item.description or "") > 1000:
        errors[attr("description")] = "must not be more than 1000 characters"
    if item.quantity < 0:
        errors[attr("quantity")] = "must not be negative"
    if len(item.quantity_type or "") > 50:
        errors[attr("quantity_type")] = "must not be more than 50 characters"
    if item.price < 0:
        errors[attr("price")] = "must not be negative"
    if not item.list_id or item.list_id <= 0:
        errors[attr("list_id")] = "must be provided"
    return errors


def is_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def check_email(errors: dict[str, str], email: str) -> None:
    if not email:
        errors[attr("email")] = "must be provided"
    elif not is_email(email):
        errors[attr("email")] = "must be a valid email address"


def check_password(errors: dict[str, str], password: str) -> None:
    size = len(password.encode("utf-8"))
    if not password:
        errors[attr("password")] = "must be provided"
    elif size < _MIN_PASSWORD_BYTES:
        errors[attr("password")] = "must be at least 8 bytes long"
    elif size > _MAX_PASSWORD_BYTES:
        errors[attr("password")] = "must not be more than 72 bytes long"


def validate_user(user: User) -> dict[str, str]:
    errors: dict[str, str] = {}
    _check_name(errors, user.name)
    check_email(errors, user.email)
    return errors
