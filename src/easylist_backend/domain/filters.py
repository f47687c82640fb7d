from __future__ import annotations

import math
from dataclasses import dataclass, field

MAX_PAGE_NUMBER = 10_000_000
MAX_PAGE_SIZE = 200

BASE_SORT_COLUMNS: tuple[str, ...] = ("id", "name", "order", "created_at", "updated_at")


def sort_safelist(*extra_columns: str) -> tuple[str, ...]:
    columns = BASE_SORT_COLUMNS + tuple(extra_columns)
    return columns + tuple(f"-{c}" for c in columns)


@dataclass(frozen=True)
class Filters:
    page: int = 1
    size: int = 20
    sort: str = "order"
    sort_safelist: tuple[str, ...] = field(default_factory=sort_safelist)
    includes: tuple[str, ...] = ()

    def sort_descending(self) -> bool:
        return self.sort.startswith("-")

    def limit(self) -> int:
        return self.size

    def offset(self) -> int:
        return (self.page - 1) * self.size


def validate_filters(f: Filters) -> dict[str, str]:
    errors: dict[str, str] = {}
    if f.page <= 0:
        errors["page[number]"] = "must be greater than zero"
    elif f.page > MAX_PAGE_NUMBER:
        errors["page[number]"] = "must be maximum 10 mln"
    if f.size <= 0:
        errors["page[size]"] = "must be greater than zero"
    elif f.size > MAX_PAGE_SIZE:
        errors["page[size]"] = "must be a maximum 200"
    if f.sort not in f.sort_safelist:
        errors["sort"] = "invalid sort value"
    return errors


@dataclass(frozen=True)
class Metadata:
    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0
    next_page: int = 0
    prev_page: int = 0
    parent_id: int = 0
    parent_name: str = ""


def calculate_metadata(
    total_records: int,
    page: int,
    page_size: int,
    *,
    parent_id: int = 0,
    parent_name: str = "",
) -> Metadata:
    if total_records == 0:
        return Metadata()

    last_page = math.ceil(total_records / page_size)
    return Metadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=last_page,
        total_records=total_records,
        next_page=page + 1 if page < last_page else 0,
        prev_page=page - 1 if page > 1 else 0,
        parent_id=parent_id,
        parent_name=parent_name,
    )
