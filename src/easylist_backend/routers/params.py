from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Header, HTTPException, Query, status

from easylist_backend.config import settings
from easylist_backend.domain.filters import Filters, validate_filters
from easylist_backend.domain.version_guard import parse_expected_version
from easylist_backend.services.store_errors import validation_http_error


@dataclass(frozen=True)
class PageQuery:
    """``page[number]``, ``page[size]``, ``sort``, ``filter[name]`` and ``include``."""

    page: int
    size: int
    sort: str
    name: str
    includes: tuple[str, ...]

    def filters(self, sort_safelist: tuple[str, ...]) -> Filters:
        f = Filters(
            page=self.page,
            size=self.size,
            sort=self.sort,
            sort_safelist=sort_safelist,
            includes=self.includes,
        )
        errors = validate_filters(f)
        if errors:
            raise validation_http_error(errors)
        return f


def page_query(
    page: Annotated[int, Query(alias="page[number]")] = 1,
    size: Annotated[int | None, Query(alias="page[size]")] = None,
    sort: Annotated[str, Query()] = "order",
    name: Annotated[str, Query(alias="filter[name]", max_length=190)] = "",
    include: Annotated[str, Query()] = "",
) -> PageQuery:
    return PageQuery(
        page=page,
        size=size if size is not None else settings.default_page_size,
        sort=sort.strip() or "order",
        name=name.strip(),
        includes=tuple(x.strip() for x in include.split(",") if x.strip()),
    )


def expected_version_header(
    x_expected_version: Annotated[str | None, Header(alias="X-Expected-Version")] = None,
) -> int | None:
    try:
        return parse_expected_version(x_expected_version)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Expected-Version must be a positive integer",
        ) from exc


def require_type(actual: str, expected: str) -> None:
    if actual != expected:
        raise validation_http_error(
            {"data.type": f"Wrong type provided, accepted type is {expected}"}
        )
