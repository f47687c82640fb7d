"""Domain errors raised by the ordered-entity store.

Services translate these into HTTP responses; the store itself never
logs or swallows them.
"""

from __future__ import annotations


class StoreError(Exception):
    pass


class RecordNotFoundError(StoreError):
    def __init__(self, message: str = "record not found") -> None:
        super().__init__(message)


class EditConflictError(StoreError):
    """The row changed (or vanished) since the caller read it."""

    def __init__(self, *, expected_version: int | None = None) -> None:
        self.expected_version: int | None = expected_version
        super().__init__("unable to update the record due to an edit conflict")


class ValidationFailedError(StoreError):
    def __init__(self, errors: dict[str, str]) -> None:
        self.errors: dict[str, str] = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class StoreTimeoutError(StoreError):
    def __init__(self, operation: str) -> None:
        self.operation: str = operation
        super().__init__(f"database operation timed out: {operation}")
