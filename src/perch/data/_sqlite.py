"""Async facade over stdlib ``sqlite3``.

Every blocking call runs in an anyio worker thread. The connection is
opened with ``check_same_thread=False`` because consecutive calls may
land on different pool threads; ``Database`` serializes access with an
``anyio.Lock`` so only one call touches the connection at a time.
"""

import sqlite3
from collections.abc import Callable, Sequence
from typing import Any

import anyio


async def _in_thread[T](func: Callable[[], T]) -> T:
    return await anyio.to_thread.run_sync(func)


class AsyncCursor:
    """Result of one statement: rows, column names and counters."""

    __slots__ = ("_cursor",)

    def __init__(self, cursor: sqlite3.Cursor) -> None:
        self._cursor = cursor

    @property
    def columns(self) -> list[str]:
        if self._cursor.description is None:
            return []
        return [desc[0] for desc in self._cursor.description]

    @property
    def rowcount(self) -> int:
        return self._cursor.rowcount

    @property
    def lastrowid(self) -> int | None:
        return self._cursor.lastrowid

    async def fetchall(self) -> list[dict[str, Any]]:
        rows = await _in_thread(self._cursor.fetchall)
        columns = self.columns
        return [dict(zip(columns, row, strict=True)) for row in rows]

    async def fetchone(self) -> dict[str, Any] | None:
        row = await _in_thread(self._cursor.fetchone)
        if row is None:
            return None
        return dict(zip(self.columns, row, strict=True))


class AsyncConnection:
    """One sqlite3 connection in autocommit mode."""

    __slots__ = ("_conn",)

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    @property
    def autocommit(self) -> bool:
        return bool(self._conn.autocommit)

    @autocommit.setter
    def autocommit(self, value: bool) -> None:
        self._conn.autocommit = value

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> AsyncCursor:
        cursor = await _in_thread(lambda: self._conn.execute(sql, params))
        return AsyncCursor(cursor)

    async def executescript(self, sql: str) -> None:
        """Run several statements separated by ``;``.

        ``executescript`` commits any pending transaction first and
        ignores ``autocommit``.
        """
        await _in_thread(lambda: self._conn.executescript(sql))

    async def commit(self) -> None:
        await _in_thread(self._conn.commit)

    async def rollback(self) -> None:
        await _in_thread(self._conn.rollback)

    async def close(self) -> None:
        await _in_thread(self._conn.close)


async def connect(path: str) -> AsyncConnection:
    """Open *path* (or ``:memory:``) with autocommit on."""
    conn = await _in_thread(
        lambda: sqlite3.connect(path, autocommit=True, check_same_thread=False)
    )
    return AsyncConnection(conn)
