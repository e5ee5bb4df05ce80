"""Typed async database access over SQLite.

SQL in, frozen dataclasses out. Not an ORM.

Connection URL format::

    sqlite:///relative/path.db     # file, relative to the working directory
    sqlite:////abs/path.db         # file, absolute path
    sqlite:///:memory:             # in-memory

One connection per ``Database``. Calls are serialized through an
``anyio.Lock``; a ``transaction()`` holds the lock for its whole block
and publishes its connection through a ContextVar so queries issued
inside it join the transaction.
"""

import logging
import threading
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import anyio

from perch.data._mapping import map_row, map_rows
from perch.data._sqlite import AsyncConnection
from perch.data._sqlite import connect as sqlite_connect
from perch.data.errors import DataError, DriverNotInstalledError, QueryError

logger = logging.getLogger("perch.data")

# Connection owned by the transaction running in the current task.
_current_conn: ContextVar[AsyncConnection] = ContextVar("perch_db_conn")


def parse_sqlite_path(url: str) -> str:
    """Extract the filesystem path from a ``sqlite://`` URL."""
    for prefix in ("sqlite:///", "sqlite://"):
        if url.startswith(prefix):
            path = url[len(prefix) :]
            if not path:
                break
            return path
    if url.split("://", 1)[0] in {"mysql", "postgresql", "postgres"}:
        msg = f"Database URL {url!r} needs a driver perch does not ship; use sqlite:///path"
        raise DriverNotInstalledError(msg)
    msg = f"Invalid SQLite URL: {url!r}"
    raise DataError(msg)


class Database:
    """Async SQLite access returning typed rows.

    Usage::

        db = Database("sqlite:///app.db")

        users = await db.fetch(User, "SELECT * FROM users WHERE name = ?", "Alice")
        user = await db.fetch_one(User, "SELECT * FROM users WHERE id = ?", 42)
        count = await db.fetch_val("SELECT COUNT(*) FROM users")

        new_id = await db.insert("INSERT INTO users (name, email) VALUES (?, ?)",
                                 "Alice", "alice@example.com")

        async with db.transaction():
            await db.execute("UPDATE users SET name = ? WHERE id = ?", "Bob", new_id)
            await db.execute("DELETE FROM users WHERE id = ?", 7)
    """

    __slots__ = ("_async_lock", "_conn", "_lock", "_path", "echo", "url")

    def __init__(self, url: str, /, *, echo: bool = False) -> None:
        self.url = url
        self.echo = echo
        self._path = parse_sqlite_path(url)
        self._conn: AsyncConnection | None = None
        self._lock = threading.Lock()
        self._async_lock: anyio.Lock | None = None

    @property
    def connected(self) -> bool:
        return self._conn is not None

    # -- Connection management --

    def _serial(self) -> anyio.Lock:
        # Created lazily: an anyio.Lock needs a running event loop.
        if self._async_lock is None:
            self._async_lock = anyio.Lock()
        return self._async_lock

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[AsyncConnection]:
        """Yield the connection, reusing the current transaction's if any."""
        current = _current_conn.get(None)
        if current is not None:
            yield current
            return

        conn = await self._ensure_connected()
        async with self._serial():
            yield conn

    async def _ensure_connected(self) -> AsyncConnection:
        if self._conn is None:
            await self.connect()
        assert self._conn is not None
        return self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run the enclosed statements atomically.

        Commits on clean exit, rolls back on any exception. A nested
        ``transaction()`` joins the outer one.
        """
        if _current_conn.get(None) is not None:
            yield
            return

        conn = await self._ensure_connected()
        async with self._serial():
            token = _current_conn.set(conn)
            try:
                conn.autocommit = False
                yield
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise
            finally:
                conn.autocommit = True
                _current_conn.reset(token)

    @asynccontextmanager
    async def _query(self, sql: str, params: Sequence[Any]) -> AsyncIterator[AsyncConnection]:
        """Yield a connection for one statement.

        Driver errors surface as ``QueryError`` with the original chained.
        With ``echo`` on, the statement and its timing go to the debug log.
        """
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                yield conn
            except QueryError:
                raise
            except Exception as exc:
                raise QueryError(str(exc)) from exc
            finally:
                if self.echo:
                    elapsed = (time.perf_counter() - t0) * 1000
                    logger.debug("%6.1fms  %s  params=%r", elapsed, sql, tuple(params))

    # -- Public query API --

    async def fetch[T](self, cls: type[T], sql: str, /, *params: Any) -> list[T]:
        """Run a query and map every row onto ``cls``."""
        async with self._query(sql, params) as conn:
            cursor = await conn.execute(sql, params)
            return map_rows(cls, await cursor.fetchall())

    async def fetch_one[T](self, cls: type[T], sql: str, /, *params: Any) -> T | None:
        """Run a query and map the first row onto ``cls``, or return ``None``."""
        async with self._query(sql, params) as conn:
            cursor = await conn.execute(sql, params)
            row = await cursor.fetchone()
            return None if row is None else map_row(cls, row)

    async def fetch_val(self, sql: str, /, *params: Any) -> Any:
        """First column of the first row (``COUNT(*)``, ``MAX(id)``...), or ``None``."""
        async with self._query(sql, params) as conn:
            cursor = await conn.execute(sql, params)
            row = await cursor.fetchone()
        return None if row is None else next(iter(row.values()))

    async def execute(self, sql: str, /, *params: Any) -> int:
        """Run an UPDATE/DELETE (or any statement) and return rows affected."""
        async with self._query(sql, params) as conn:
            cursor = await conn.execute(sql, params)
        return cursor.rowcount

    async def insert(self, sql: str, /, *params: Any) -> int:
        """Run an INSERT and return the new row id."""
        async with self._query(sql, params) as conn:
            cursor = await conn.execute(sql, params)
        if cursor.lastrowid is None:
            msg = f"Statement produced no row id: {sql}"
            raise QueryError(msg)
        return cursor.lastrowid

    async def execute_script(self, sql: str, /) -> None:
        """Run several ``;``-separated statements, e.g. a schema."""
        async with self._query(sql, ()) as conn:
            await conn.executescript(sql)

    # -- Lifecycle --

    async def connect(self) -> None:
        """Open the connection. Called automatically on first query."""
        if self._conn is not None:
            return
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = await sqlite_connect(self._path)
            await conn.execute("PRAGMA foreign_keys=ON")
        except Exception as exc:
            msg = f"Cannot open database {self.url!r}: {exc}"
            raise DataError(msg) from exc
        with self._lock:
            if self._conn is None:
                self._conn = conn
                logger.info("Connected to %s", self.url)
                return
        await conn.close()

    async def disconnect(self) -> None:
        """Close the connection, if open."""
        with self._lock:
            conn, self._conn = self._conn, None
        if conn is not None:
            await conn.close()
            logger.info("Disconnected from %s", self.url)

    async def __aenter__(self) -> Database:
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.disconnect()
