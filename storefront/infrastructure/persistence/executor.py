"""Query execution over pooled async connections.

Read path: ``query()`` yields a lazy, forward-only Cursor over a server-side
result.  Write path: ``execute()`` / ``execute_returning()`` run in their own
transaction and commit before returning.

Resources are scoped with ``async with`` so they are released on every exit
path (normal return, error, CanceledError or task cancellation) in the order
cursor, then connection.  Every network wait is awaited through
``run_cancellable`` so a CancellationSignal can interrupt it.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncResult

from storefront.domain.cancellation import CancellationSignal, run_cancellable
from storefront.domain.errors import (
    DataAccessError,
    StoreConnectionError,
    StoreError,
    StoreErrorKind,
)
from storefront.infrastructure.database import ConnectionProvider
from storefront.infrastructure.persistence.binding import BoundQuery
from storefront.infrastructure.persistence.mapping import RowMapper

logger = logging.getLogger(__name__)

T = TypeVar("T")

_DEADLOCK_STATES = frozenset({"40P01", "40001"})
_TIMEOUT_STATES = frozenset({"57014"})


def _classify(exc: sa_exc.DBAPIError) -> StoreErrorKind:
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate in _DEADLOCK_STATES:
        return StoreErrorKind.DEADLOCK
    if sqlstate in _TIMEOUT_STATES:
        return StoreErrorKind.TIMEOUT
    if isinstance(exc, sa_exc.IntegrityError):
        return StoreErrorKind.CONSTRAINT
    if isinstance(exc, sa_exc.DataError):
        return StoreErrorKind.DATA
    if isinstance(exc, sa_exc.ProgrammingError):
        return StoreErrorKind.PROGRAMMING
    if isinstance(exc, sa_exc.OperationalError):
        return StoreErrorKind.OPERATIONAL
    return StoreErrorKind.UNKNOWN


def translate_store_error(exc: sa_exc.SQLAlchemyError) -> DataAccessError:
    """Map a SQLAlchemy failure onto the data-access taxonomy.

    The caller raises the result ``from exc`` so the driver error stays
    attached as ``__cause__``.
    """
    if isinstance(exc, sa_exc.DBAPIError):
        if exc.connection_invalidated:
            return StoreConnectionError("connection to the datastore was lost")
        kind = _classify(exc)
        # hide_parameters on the engine keeps bound values out of this text.
        return StoreError(kind, str(exc.orig) if exc.orig is not None else str(exc))
    return StoreError(StoreErrorKind.UNKNOWN, str(exc))


class Cursor:
    """Lazy, single-pass sequence of rows from one statement.

    Each fetch is a suspension point and honours the call's signal.  A cursor
    is only valid inside the ``async with executor.query(...)`` block that
    produced it.
    """

    def __init__(self, result: AsyncResult, signal: CancellationSignal | None = None) -> None:
        self._result = result
        self._signal = signal
        self._exhausted = False

    def keys(self) -> list[str]:
        return list(self._result.keys())

    async def fetchone(self) -> Row | None:
        if self._exhausted:
            return None
        try:
            row = await run_cancellable(self._result.fetchone(), self._signal)
        except sa_exc.SQLAlchemyError as exc:
            raise translate_store_error(exc) from exc
        if row is None:
            self._exhausted = True
        return row

    def __aiter__(self) -> Cursor:
        return self

    async def __anext__(self) -> Row:
        row = await self.fetchone()
        if row is None:
            raise StopAsyncIteration
        return row

    async def close(self) -> None:
        self._exhausted = True
        await self._result.close()


class QueryExecutor:
    def __init__(self, provider: ConnectionProvider) -> None:
        self._provider = provider

    @asynccontextmanager
    async def query(
        self, bound: BoundQuery, signal: CancellationSignal | None = None
    ) -> AsyncIterator[Cursor]:
        async with self._provider.acquire(signal) as conn:
            logger.debug("Dispatching %s query", bound.kind)
            try:
                result = await run_cancellable(
                    conn.stream(bound.statement, dict(bound.params)), signal
                )
            except sa_exc.SQLAlchemyError as exc:
                error = translate_store_error(exc)
                logger.warning("Query failed: %s", error)
                raise error from exc
            cursor = Cursor(result, signal)
            try:
                yield cursor
            finally:
                await cursor.close()

    async def execute(self, bound: BoundQuery, signal: CancellationSignal | None = None) -> int:
        """Run a write statement in its own transaction; return the affected row count."""
        async with self._provider.acquire(signal) as conn:
            logger.debug("Dispatching %s statement", bound.kind)
            try:
                result = await run_cancellable(
                    self._in_transaction(conn, bound, returning=False), signal
                )
            except sa_exc.SQLAlchemyError as exc:
                error = translate_store_error(exc)
                logger.warning("Statement failed: %s", error)
                raise error from exc
        return result

    async def execute_returning(
        self,
        bound: BoundQuery,
        mapper: RowMapper[T],
        signal: CancellationSignal | None = None,
    ) -> T:
        """Run a write statement with a RETURNING clause and decode its first row.

        The write and the read-back happen in one round-trip, committed
        together.
        """
        async with self._provider.acquire(signal) as conn:
            logger.debug("Dispatching %s statement with RETURNING", bound.kind)
            try:
                keys, rows = await run_cancellable(
                    self._in_transaction(conn, bound, returning=True), signal
                )
            except sa_exc.SQLAlchemyError as exc:
                error = translate_store_error(exc)
                logger.warning("Statement failed: %s", error)
                raise error from exc
        if not rows:
            raise StoreError(StoreErrorKind.UNKNOWN, "statement returned no row")
        return mapper.decode(keys, rows[0])

    @staticmethod
    async def _in_transaction(
        conn: AsyncConnection, bound: BoundQuery, *, returning: bool
    ) -> Any:
        async with conn.begin():
            result = await conn.execute(bound.statement, dict(bound.params))
            if returning:
                return list(result.keys()), result.all()
            return result.rowcount

    async def fetch_all(
        self,
        bound: BoundQuery,
        mapper: RowMapper[T],
        signal: CancellationSignal | None = None,
    ) -> list[T]:
        async with self.query(bound, signal) as cursor:
            decode = mapper.plan(cursor.keys())
            return [decode(row) async for row in cursor]

    async def fetch_optional(
        self,
        bound: BoundQuery,
        mapper: RowMapper[T],
        signal: CancellationSignal | None = None,
    ) -> T | None:
        async with self.query(bound, signal) as cursor:
            row = await cursor.fetchone()
            if row is None:
                return None
            return mapper.plan(cursor.keys())(row)

    async def fetch_scalar(
        self, bound: BoundQuery, signal: CancellationSignal | None = None
    ) -> Any:
        """Return the first column of the first row, or None when there are no rows."""
        async with self.query(bound, signal) as cursor:
            row = await cursor.fetchone()
        return None if row is None else row[0]

