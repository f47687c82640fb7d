from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException, status

from easylist_backend.errors import (
    EditConflictError,
    RecordNotFoundError,
    StoreTimeoutError,
    ValidationFailedError,
)


def validation_http_error(errors: dict[str, str]) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"message": "validation failed", "details": {"fields": errors}},
    )


@contextmanager
def store_errors_as_http() -> Iterator[None]:
    """Map ordered-store errors onto HTTP statuses; anything else propagates."""
    try:
        yield
    except ValidationFailedError as exc:
        raise validation_http_error(exc.errors) from exc
    except EditConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": "unable to update the record due to an edit conflict, please try again",
                "details": {"expected_version": exc.expected_version},
            },
        ) from exc
    except RecordNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="the requested resource could not be found",
        ) from exc
    except StoreTimeoutError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"the database did not answer in time ({exc.operation})",
        ) from exc
