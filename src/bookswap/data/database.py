"""Async database access over SQLite.

SQL in, row mappings out. Values always travel as bound parameters.

Connection URL format::

    sqlite:///path/to/db.sqlite    # SQLite file
    sqlite:///:memory:             # In-memory SQLite

One ``Database`` is constructed per process and handed to whatever
needs it. Access to the single SQLite connection is serialized by an
``anyio.Lock``; statements inside ``transaction()`` reuse the
transaction's connection through a ContextVar instead of re-acquiring
the lock.
"""

import logging
import sqlite3
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

import anyio

from bookswap.data._sqlite import AsyncConnection
from bookswap.data._sqlite import connect as sqlite_connect
from bookswap.data.errors import (
    ConnectionError,
    DataError,
    DriverNotInstalledError,
    QueryError,
)

logger = logging.getLogger("bookswap.data")

# Set inside transaction(); query methods reuse this connection.
_current_conn: ContextVar[AsyncConnection] = ContextVar("bookswap_db_conn")


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Database connection configuration."""

    url: str
    echo: bool = False

    @property
    def path(self) -> str:
        return _parse_sqlite_path(self.url)


class Database:
    """Async access to a SQLite database.

    Usage::

        db = Database("sqlite:///bookswap.db")
        await db.connect()

        rows = await db.fetch("SELECT * FROM book WHERE user_id = ?", 3)
        row = await db.fetch_one("SELECT * FROM user WHERE email = ?", email)
        count = await db.fetch_val("SELECT COUNT(*) FROM book")
        await db.execute("DELETE FROM book WHERE id = ?", 7)

        async with db.transaction():
            await db.execute("INSERT INTO user (username) VALUES (?)", "ana")
            await db.execute("INSERT INTO book (title, user_id) VALUES (?, ?)", "Dune", 1)
    """

    __slots__ = ("_async_lock", "_config", "_conn", "_initialized")

    def __init__(self, url: str, /, *, echo: bool = False) -> None:
        _check_driver(url)
        self._config = DatabaseConfig(url=url, echo=echo)
        self._async_lock: anyio.Lock | None = None
        self._conn: AsyncConnection | None = None
        self._initialized = False

    @property
    def url(self) -> str:
        return self._config.url

    @property
    def connected(self) -> bool:
        return self._initialized

    # -- Connection management --

    def _get_async_lock(self) -> anyio.Lock:
        # Created lazily: an anyio.Lock needs a running event loop.
        if self._async_lock is None:
            self._async_lock = anyio.Lock()
        return self._async_lock

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[AsyncConnection]:
        if not self._initialized:
            await self.connect()

        try:
            conn = _current_conn.get()
        except LookupError:
            pass
        else:
            yield conn
            return

        async with self._get_async_lock():
            if self._conn is None:
                msg = "Database connection was closed"
                raise ConnectionError(msg)
            yield self._conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Execute several statements atomically.

        Commits on clean exit, rolls back on exception. A nested
        ``transaction()`` joins the outer one.
        """
        if not self._initialized:
            await self.connect()

        try:
            _current_conn.get()
        except LookupError:
            pass
        else:
            yield
            return

        async with self._get_async_lock():
            conn = self._conn
            if conn is None:
                msg = "Database connection was closed"
                raise ConnectionError(msg)
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

    def _log_query(self, sql: str, params: Sequence[Any], elapsed: float) -> None:
        if not self._config.echo:
            return
        logger.info("%6.1fms  %s  params=%r", elapsed * 1000, sql, tuple(params))

    # -- Public query API --

    async def fetch(self, sql: str, /, *params: Any) -> list[dict[str, Any]]:
        """Execute a query and return every row as a column -> value dict."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                cursor = await conn.execute(sql, params)
                rows = await cursor.fetchall()
                return [_as_dict(cursor, row) for row in rows]
            except (sqlite3.Error, OverflowError) as exc:
                raise QueryError(str(exc)) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)

    async def fetch_one(self, sql: str, /, *params: Any) -> dict[str, Any] | None:
        """Execute a query and return the first row, or ``None``."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                cursor = await conn.execute(sql, params)
                row = await cursor.fetchone()
                return None if row is None else _as_dict(cursor, row)
            except (sqlite3.Error, OverflowError) as exc:
                raise QueryError(str(exc)) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)

    async def fetch_val(self, sql: str, /, *params: Any) -> Any:
        """Execute a query and return the first column of the first row.

        Useful for COUNT, SUM, MAX, etc.
        """
        row = await self.fetch_one(sql, *params)
        if row is None:
            return None
        return next(iter(row.values()))

    async def execute(self, sql: str, /, *params: Any) -> int:
        """Execute INSERT/UPDATE/DELETE and return the number of rows affected."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                cursor = await conn.execute(sql, params)
                return cursor.rowcount
            except (sqlite3.Error, OverflowError) as exc:
                raise QueryError(str(exc)) from exc
            finally:
                self._log_query(sql, params, time.perf_counter() - t0)

    async def execute_script(self, sql: str, /) -> None:
        """Execute several ``;``-separated statements (schema, migrations)."""
        t0 = time.perf_counter()
        async with self._connection() as conn:
            try:
                await conn.executescript(sql)
            except sqlite3.Error as exc:
                raise QueryError(str(exc)) from exc
            finally:
                self._log_query(sql, (), time.perf_counter() - t0)

    # -- Lifecycle --

    async def connect(self) -> None:
        """Open the connection.

        Called automatically on first query. Call it at startup to fail
        fast: an unreachable database raises ``ConnectionError``.
        """
        if self._initialized:
            return
        async with self._get_async_lock():
            if self._initialized:
                return
            try:
                conn = await sqlite_connect(self._config.path)
            except sqlite3.Error as exc:
                msg = f"Database connection failed: {exc}"
                raise ConnectionError(msg) from exc
            try:
                await conn.execute("PRAGMA foreign_keys=ON")
            except sqlite3.Error as exc:
                await conn.close()
                msg = f"Database connection failed: {exc}"
                raise ConnectionError(msg) from exc
            self._conn = conn
            self._initialized = True

    async def disconnect(self) -> None:
        """Close the connection once the statement in progress, if any, finishes."""
        if not self._initialized:
            return
        async with self._get_async_lock():
            conn = self._conn
            if not self._initialized or conn is None:
                return
            self._conn = None
            self._initialized = False
            await conn.close()

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.disconnect()


def _as_dict(cursor: Any, row: Sequence[Any]) -> dict[str, Any]:
    columns = [desc[0] for desc in cursor.description]
    return dict(zip(columns, row, strict=True))


def _check_driver(url: str) -> None:
    if url.startswith("sqlite"):
        return
    msg = f"Unsupported database URL scheme: {url!r}. Supported: sqlite:///path"
    raise DriverNotInstalledError(msg)


def _parse_sqlite_path(url: str) -> str:
    """Extract the file path from a sqlite:// URL.

    sqlite:///path/to/db  ->  path/to/db
    sqlite:///:memory:    ->  :memory:
    """
    for prefix in ("sqlite:///", "sqlite://"):
        if url.startswith(prefix):
            return url[len(prefix) :]
    msg = f"Invalid SQLite URL: {url!r}"
    raise DataError(msg)
