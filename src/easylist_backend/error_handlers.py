"""Exception handlers rendering every error as a JSON:API error document.

Shape: ``{"errors": [{status, title, detail, source}], "meta": {"request_id"}}``.
Services raise ``HTTPException`` with either a string detail or
``{"message": str, "details": {...}}``; 422 details carry ``fields``, one
error object is emitted per field.
"""

from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from easylist_backend.jsonapi import JsonApiResponse
from easylist_backend.schemas import ErrorDocument, ErrorObject

logger = logging.getLogger(__name__)

_TITLES: dict[int, str] = {
    400: "Bad request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method not allowed",
    409: "Edit conflict",
    413: "Payload too large",
    422: "Validation failed",
    500: "Internal server error",
    503: "Service unavailable",
}


def _title(status_code: int) -> str:
    return _TITLES.get(status_code, f"HTTP {status_code}")


def error_source(field: str) -> dict[str, str]:
    # Body fields become JSON pointers, anything else is a query parameter.
    if field == "data" or field.startswith("data."):
        return {"pointer": "/" + field.replace(".", "/")}
    return {"parameter": field}


def field_errors(status_code: int, fields: dict[str, str]) -> list[ErrorObject]:
    return [
        ErrorObject(
            status=str(status_code),
            title=f"Validation failed for field {field}",
            detail=message,
            source=error_source(field),
        )
        for field, message in fields.items()
    ]


def _render(
    request: Request,
    status_code: int,
    errors: list[ErrorObject],
    headers: dict[str, str] | None = None,
) -> JsonApiResponse:
    request_id = getattr(request.state, "request_id", None)
    payload = ErrorDocument(
        errors=errors,
        meta={"request_id": request_id} if request_id else None,
    )
    return JsonApiResponse(
        status_code=status_code,
        content=jsonable_encoder(payload, exclude_none=True),
        headers=headers,
    )


async def _http_exception_handler(request: Request, exc: Exception) -> JsonApiResponse:
    http_exc = cast(StarletteHTTPException, exc)
    status_code = http_exc.status_code
    headers = getattr(http_exc, "headers", None)

    message = str(http_exc.detail)
    if isinstance(http_exc.detail, dict):
        detail = cast(dict[str, Any], http_exc.detail)
        details = detail.get("details")
        if isinstance(details, dict) and isinstance(details.get("fields"), dict):
            fields = cast(dict[str, str], details["fields"])
            return _render(request, status_code, field_errors(status_code, fields), headers)
        message = str(detail.get("message", message))

    error = ErrorObject(
        status=str(status_code),
        title=_title(status_code),
        detail=message,
        source={"pointer": request.url.path},
    )
    return _render(request, status_code, [error], headers)


def _loc_to_field(loc: tuple[Any, ...] | list[Any]) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] == "body":
        return ".".join(parts[1:]) or "data"
    if parts and parts[0] in {"query", "path", "header"}:
        return ".".join(parts[1:])
    return ".".join(parts)


async def _validation_exception_handler(request: Request, exc: Exception) -> JsonApiResponse:
    validation_exc = cast(RequestValidationError, exc)
    fields: dict[str, str] = {}
    for err in validation_exc.errors():
        field = _loc_to_field(err.get("loc", ()))
        fields.setdefault(field, str(err.get("msg", "invalid value")))
    return _render(request, 422, field_errors(422, fields))


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JsonApiResponse:
    request_id = getattr(request.state, "request_id", None)
    logger.exception(
        "unhandled exception request_id=%s method=%s path=%s",
        request_id,
        request.method,
        request.url.path,
        exc_info=exc,
    )
    error = ErrorObject(
        status="500",
        title=_title(500),
        detail="The server encountered a problem and could not process your request",
    )
    return _render(request, 500, [error])


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
