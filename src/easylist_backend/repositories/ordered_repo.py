"""Generic store for rows ranked by an ``order`` column inside a scope.

Folders, lists and items share one protocol:

- insert appends at ``max(order) + 1`` of the scope, version starts at 1;
- update is guarded by ``version`` and, when the order changed, shifts every
  other row at or after the new position up by one;
- a row moved into another scope is appended there, or shifts that scope when
  an explicit order came with the move;
- delete removes one row and never renumbers the survivors.

Appends lock the scope's parent row (user, folder or list) first, so two
concurrent inserts into one scope, even an empty one, cannot read the same
``max(order)``.

Every public call runs under ``settings.db_operation_timeout_seconds``.
Rows handed back to callers are detached from the session, so in-memory edits
only reach the database through :meth:`OrderedRepository.update`.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, Generic, TypeVar, cast

import anyio
import sqlalchemy as sa
from sqlalchemy.engine import CursorResult
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from easylist_backend.config import settings
from easylist_backend.domain.filters import Filters, Metadata, calculate_metadata, sort_safelist
from easylist_backend.errors import (
    EditConflictError,
    RecordNotFoundError,
    StoreTimeoutError,
    ValidationFailedError,
)
from easylist_backend.models import OrderedRow, utc_now
from easylist_backend.validators import check_order

RowT = TypeVar("RowT", bound=OrderedRow)
_Out = TypeVar("_Out")


async def _rollback_quietly(session: AsyncSession) -> None:
    try:
        await session.rollback()
    except Exception:
        pass


def _rowcount(result: object) -> int:
    return int(cast(CursorResult[Any], result).rowcount or 0)


class OrderedRepository(Generic[RowT]):
    def __init__(
        self,
        model: type[RowT],
        *,
        scope_fields: tuple[str, ...],
        mutable_fields: tuple[str, ...],
        validate: Callable[[RowT], dict[str, str]],
        sort_columns: tuple[str, ...] = (),
        after_delete: Callable[[RowT], Awaitable[None]] | None = None,
        parent: type[SQLModel] | None = None,
    ) -> None:
        if not scope_fields or scope_fields[0] != "user_id":
            raise ValueError("scope must start with user_id")
        self.model = model
        self.scope_fields = scope_fields
        self.mutable_fields = mutable_fields
        self.sort_safelist = sort_safelist(*sort_columns)
        self.parent = parent
        self._validate = validate
        self._after_delete = after_delete

    # -- helpers -----------------------------------------------------------

    def _col(self, name: str) -> Any:
        return getattr(self.model, name)

    def scope_of(self, row: RowT) -> dict[str, int]:
        return {name: int(getattr(row, name)) for name in self.scope_fields}

    def _scope_where(self, scope: Mapping[str, int]) -> list[ColumnElement[bool]]:
        missing = [name for name in self.scope_fields if name not in scope]
        if missing:
            raise ValueError(f"scope is missing {', '.join(missing)}")
        return [self._col(name) == scope[name] for name in self.scope_fields]

    def _owned(self, row_id: int, user_id: int) -> list[ColumnElement[bool]]:
        return [self._col("id") == row_id, self._col("user_id") == user_id]

    def validate(self, row: RowT, *, for_update: bool = False) -> None:
        errors = self._validate(row)
        if for_update:
            check_order(errors, row)
        if errors:
            raise ValidationFailedError(errors)

    async def with_deadline(self, op: str, fn: Callable[[], Awaitable[_Out]]) -> _Out:
        try:
            with anyio.fail_after(settings.db_operation_timeout_seconds):
                return await fn()
        except TimeoutError as exc:
            raise StoreTimeoutError(op) from exc

    async def _in_tx(
        self, session: AsyncSession, op: str, apply: Callable[[], Awaitable[_Out]]
    ) -> _Out:
        # The session autobegins; the rollback runs outside the deadline's cancel scope.
        async def _run() -> _Out:
            out = await apply()
            await session.commit()
            return out

        try:
            return await self.with_deadline(op, _run)
        except Exception:
            await _rollback_quietly(session)
            raise

    def parent_lock(self, scope: Mapping[str, int]) -> Any:
        """``SELECT ... FOR UPDATE`` on the row that owns ``scope``.

        The parent is keyed by the scope's last column. Without a configured
        parent the scope's own rows are locked, which covers nothing when the
        scope is still empty.
        """
        where = self._scope_where(scope)
        if self.parent is None:
            return select(self._col("id")).where(*where).with_for_update()
        parent_id = scope[self.scope_fields[-1]]
        return (
            select(getattr(self.parent, "id"))
            .where(getattr(self.parent, "id") == parent_id)
            .with_for_update()
        )

    async def _lock_scope(self, session: AsyncSession, scope: Mapping[str, int]) -> None:
        _ = (await session.exec(self.parent_lock(scope))).all()

    async def _max_order(self, session: AsyncSession, scope: Mapping[str, int]) -> int:
        stmt = select(sa.func.max(self._col("order"))).where(*self._scope_where(scope))
        value = (await session.exec(stmt)).one()
        return int(value or 0)

    # -- ordering protocol ---------------------------------------------------

    async def next_order(self, session: AsyncSession, scope: Mapping[str, int]) -> int:
        async def _read() -> int:
            return await self._max_order(session, scope) + 1

        return await self.with_deadline("next_order", _read)

    async def insert(self, session: AsyncSession, row: RowT) -> RowT:
        self.validate(row)
        scope = self.scope_of(row)
        old_order, old_version = row.order, row.version

        async def _apply() -> RowT:
            # Serialize concurrent appends into the same scope (no-op on SQLite).
            await self._lock_scope(session, scope)

            row.order = await self._max_order(session, scope) + 1
            row.version = 1
            session.add(row)
            await session.flush()
            return row

        try:
            out = await self._in_tx(session, "insert", _apply)
        except Exception:
            row.order, row.version = old_order, old_version
            raise
        session.expunge(out)
        return out

    async def update(
        self,
        session: AsyncSession,
        row: RowT,
        old_order: int,
        *,
        old_scope: Mapping[str, int] | None = None,
        expected_version: int | None = None,
    ) -> None:
        """Persist ``row`` if its version is still current and make room at its order.

        ``expected_version`` defaults to ``row.version``; a mismatch (or a row that
        no longer exists) raises :class:`EditConflictError` with nothing written.

        ``old_scope`` is the row's scope as it was read. When the row now sits in
        another scope and kept its order, it is appended at the end of the new
        scope instead; with a new order, the new scope is shifted.
        """
        self.validate(row, for_update=True)
        if row.id is None:
            raise RecordNotFoundError()

        row_id = int(row.id)
        guard_version = row.version if expected_version is None else expected_version
        scope = self.scope_of(row)
        moved = old_scope is not None and dict(old_scope) != scope
        append = moved and row.order == old_order
        now = utc_now()
        values: dict[str, Any] = {name: getattr(row, name) for name in self.mutable_fields}
        values["order"] = row.order
        values["version"] = self._col("version") + 1
        values["updated_at"] = now

        async def _apply() -> None:
            if moved:
                await self._lock_scope(session, scope)
            if append:
                values["order"] = await self._max_order(session, scope) + 1

            stmt = (
                sa.update(self.model)
                .where(*self._owned(row_id, scope["user_id"]))
                .where(self._col("version") == guard_version)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if _rowcount(await session.exec(stmt)) == 0:
                raise EditConflictError(expected_version=guard_version)

            if not append and row.order != old_order:
                shift = (
                    sa.update(self.model)
                    .where(*self._scope_where(scope))
                    .where(self._col("id") != row_id)
                    .where(self._col("order") >= row.order)
                    .values(order=self._col("order") + 1)
                    .execution_options(synchronize_session=False)
                )
                _ = await session.exec(shift)

        await self._in_tx(session, "update", _apply)
        row.order = int(values["order"])
        row.version = guard_version + 1
        row.updated_at = now

    async def delete(self, session: AsyncSession, row_id: int, *, user_id: int) -> RowT:
        async def _apply() -> RowT:
            found = (
                await session.exec(select(self.model).where(*self._owned(row_id, user_id)))
            ).first()
            if found is None:
                raise RecordNotFoundError()
            session.expunge(found)

            stmt = (
                sa.delete(self.model)
                .where(*self._owned(row_id, user_id))
                .execution_options(synchronize_session=False)
            )
            if _rowcount(await session.exec(stmt)) == 0:
                raise RecordNotFoundError()
            return found

        deleted = await self._in_tx(session, "delete", _apply)
        if self._after_delete is not None:
            await self._after_delete(deleted)
        return deleted

    # -- reads ---------------------------------------------------------------

    async def get(self, session: AsyncSession, row_id: int, *, user_id: int) -> RowT:
        async def _read() -> RowT:
            found = (
                await session.exec(select(self.model).where(*self._owned(row_id, user_id)))
            ).first()
            if found is None:
                raise RecordNotFoundError()
            session.expunge(found)
            return found

        return await self.with_deadline("get", _read)

    async def exists(self, session: AsyncSession, row_id: int, *, user_id: int) -> bool:
        async def _read() -> bool:
            stmt = select(self._col("id")).where(*self._owned(row_id, user_id))
            return (await session.exec(stmt)).first() is not None

        return await self.with_deadline("exists", _read)

    async def get_all(
        self,
        session: AsyncSession,
        *,
        user_id: int,
        filters: Filters,
        name: str = "",
        where: Iterable[ColumnElement[bool]] = (),
        parent_id: int = 0,
        parent_name: str = "",
    ) -> tuple[list[RowT], Metadata]:
        if filters.sort not in self.sort_safelist:
            raise ValidationFailedError({"sort": "invalid sort value"})
        sort_col = self._col(filters.sort.lstrip("-"))
        conditions: list[ColumnElement[bool]] = [self._col("user_id") == user_id, *where]
        if name:
            conditions.append(
                sa.func.lower(self._col("name")).contains(name.lower(), autoescape=True)
            )

        async def _read() -> tuple[list[RowT], Metadata]:
            total_stmt = select(sa.func.count()).select_from(self.model).where(*conditions)
            total = int((await session.exec(total_stmt)).one())

            stmt = (
                select(self.model)
                .where(*conditions)
                .order_by(
                    sort_col.desc() if filters.sort_descending() else sort_col.asc(),
                    self._col("id").asc(),
                )
                .limit(filters.limit())
                .offset(filters.offset())
            )
            rows = list((await session.exec(stmt)).all())
            for r in rows:
                session.expunge(r)
            meta = calculate_metadata(
                total, filters.page, filters.size, parent_id=parent_id, parent_name=parent_name
            )
            return rows, meta

        return await self.with_deadline("get_all", _read)
