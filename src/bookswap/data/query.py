"""Fluent SQL statement builder for bookswap.data.

Accumulates clauses through chained calls and runs exactly one
statement through a terminal call (``get``, ``first``, ``insert``,
``update``, ``delete``)::

    rows = await (
        QueryBuilder(db)
        .table("book")
        .select("id", "title")
        .where("user_id", "=", user_id)
        .where("status_id", "=", 1)
        .order_by("title", "asc")
        .limit(20)
        .get()
    )

Values never reach the SQL text: each one becomes a ``?`` placeholder
and is bound positionally, in the order the clauses were added.
Identifiers (tables, columns) and operators are interpolated, so they
are checked against a safe pattern and an allow-list instead.

A builder is single-use. After its terminal call every further call
raises ``BuilderConsumedError``; build a new one for the next query.
``compile_*`` methods return the ``Statement`` a terminal would run,
without running it.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Self

from bookswap.data.errors import BuilderConsumedError, GuardError, InvalidArgument

if TYPE_CHECKING:
    from bookswap.data.database import Database

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)?")
_SELECT_COLUMN = re.compile(r"(?:[A-Za-z_][A-Za-z0-9_]*\.)?(?:\*|[A-Za-z_][A-Za-z0-9_]*)")

OPERATORS = frozenset({"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "NOT LIKE", "IS", "IS NOT"})
DIRECTIONS = frozenset({"ASC", "DESC"})
JOIN_KINDS = frozenset({"INNER", "LEFT", "RIGHT"})


@dataclass(frozen=True, slots=True)
class Statement:
    """SQL text plus the positional values for its placeholders."""

    sql: str
    params: tuple[Any, ...] = ()


def _identifier(name: str, what: str = "identifier") -> str:
    if not isinstance(name, str) or not _IDENTIFIER.fullmatch(name):
        msg = f"Invalid {what}: {name!r}"
        raise InvalidArgument(msg)
    return name


def _operator(operator: str) -> str:
    normalized = " ".join(str(operator).upper().split())
    if normalized not in OPERATORS:
        allowed = ", ".join(sorted(OPERATORS))
        msg = f"Invalid operator: {operator!r}. Allowed: {allowed}"
        raise InvalidArgument(msg)
    return normalized


def _count(n: int, what: str) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        msg = f"Invalid {what}: {n!r} (expected a non-negative integer)"
        raise InvalidArgument(msg)
    return n


class QueryBuilder:
    """Builds and runs one parameterized statement.

    Chainable calls return the same builder. Argument errors raise
    ``InvalidArgument`` before the builder's state changes, so a failed
    call leaves nothing half-added behind.
    """

    __slots__ = (
        "_columns",
        "_consumed",
        "_db",
        "_groups",
        "_joins",
        "_limit",
        "_offset",
        "_orders",
        "_params",
        "_rowcount",
        "_table",
        "_wheres",
    )

    def __init__(self, db: "Database", table: str | None = None) -> None:
        self._db = db
        self._table: str | None = None
        self._columns: list[str] = ["*"]
        self._wheres: list[str] = []
        self._params: list[Any] = []
        self._orders: list[str] = []
        self._groups: list[str] = []
        self._joins: list[str] = []
        self._limit = 0
        self._offset = 0
        self._consumed = False
        self._rowcount: int | None = None
        if table is not None:
            self.table(table)

    # -- Building --

    def table(self, name: str) -> Self:
        """Set the target table."""
        self._check_usable()
        self._table = _identifier(name, "table name")
        return self

    def select(self, *columns: str) -> Self:
        """Replace the default ``*`` projection."""
        self._check_usable()
        if not columns:
            msg = "select() needs at least one column"
            raise InvalidArgument(msg)
        for column in columns:
            if not isinstance(column, str) or not _SELECT_COLUMN.fullmatch(column):
                msg = f"Invalid column: {column!r}"
                raise InvalidArgument(msg)
        self._columns = list(columns)
        return self

    def where(self, column: str, operator: str, value: Any) -> Self:
        """Add ``column operator ?`` and bind *value*. Multiple calls are ANDed."""
        self._check_usable()
        fragment = f"{_identifier(column, 'column')} {_operator(operator)} ?"
        self._wheres.append(fragment)
        self._params.append(value)
        return self

    def order_by(self, column: str, direction: str = "ASC") -> Self:
        """Add an ORDER BY term. *direction* is ASC or DESC, any case."""
        self._check_usable()
        normalized = str(direction).upper()
        if normalized not in DIRECTIONS:
            msg = f"Invalid ORDER BY direction: {direction!r}"
            raise InvalidArgument(msg)
        self._orders.append(f"{_identifier(column, 'column')} {normalized}")
        return self

    def group_by(self, *columns: str) -> Self:
        """Add GROUP BY columns."""
        self._check_usable()
        checked = [_identifier(column, "column") for column in columns]
        self._groups.extend(checked)
        return self

    def join(
        self,
        table: str,
        left_column: str,
        operator: str,
        right_column: str,
        kind: str = "inner",
    ) -> Self:
        """Add ``KIND JOIN table ON left operator right``.

        *kind* is inner, left, or right, any case. Both sides of the ON
        condition are column references, not values.
        """
        self._check_usable()
        normalized = str(kind).upper()
        if normalized not in JOIN_KINDS:
            msg = f"Invalid join type: {kind!r}"
            raise InvalidArgument(msg)
        fragment = (
            f"{normalized} JOIN {_identifier(table, 'table name')} "
            f"ON {_identifier(left_column, 'column')} {_operator(operator)} "
            f"{_identifier(right_column, 'column')}"
        )
        self._joins.append(fragment)
        return self

    def limit(self, n: int) -> Self:
        """Cap the number of rows. ``0`` means no LIMIT clause."""
        self._check_usable()
        self._limit = _count(n, "limit")
        return self

    def offset(self, n: int) -> Self:
        """Skip *n* rows. ``0`` means no OFFSET clause."""
        self._check_usable()
        self._offset = _count(n, "offset")
        return self

    # -- Compilation --

    def compile_select(self) -> Statement:
        """The statement ``get()`` runs."""
        self._check_usable()
        table = self._require_table("get")
        parts = [f"SELECT {', '.join(self._columns)} FROM {table}"]
        params = list(self._params)
        if self._joins:
            parts.append(" ".join(self._joins))
        if self._wheres:
            parts.append(self._where_clause())
        if self._groups:
            parts.append(f"GROUP BY {', '.join(self._groups)}")
        if self._orders:
            parts.append(f"ORDER BY {', '.join(self._orders)}")
        if self._limit > 0:
            parts.append("LIMIT ?")
            params.append(self._limit)
        if self._offset > 0:
            parts.append("OFFSET ?")
            params.append(self._offset)
        return Statement(" ".join(parts), tuple(params))

    def compile_first(self) -> Statement:
        """The statement ``first()`` runs: projection, WHERE, ``LIMIT 1``."""
        self._check_usable()
        table = self._require_table("first")
        parts = [f"SELECT {', '.join(self._columns)} FROM {table}"]
        if self._wheres:
            parts.append(self._where_clause())
        parts.append("LIMIT 1")
        return Statement(" ".join(parts), tuple(self._params))

    def compile_insert(self, data: Mapping[str, Any]) -> Statement:
        """The statement ``insert(data)`` runs."""
        self._check_usable()
        table = self._require_table("insert")
        columns = self._data_columns(data, "insert")
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
        return Statement(sql, tuple(data.values()))

    def compile_update(self, data: Mapping[str, Any]) -> Statement:
        """The statement ``update(data)`` runs. SET values bind before WHERE values."""
        self._check_usable()
        table = self._require_table("update")
        self._guard("Update", "updates")
        columns = self._data_columns(data, "update")
        assignments = ", ".join(f"{column} = ?" for column in columns)
        sql = f"UPDATE {table} SET {assignments} {self._where_clause()}"
        return Statement(sql, (*data.values(), *self._params))

    def compile_delete(self) -> Statement:
        """The statement ``delete()`` runs."""
        self._check_usable()
        table = self._require_table("delete")
        self._guard("Delete", "deletions")
        return Statement(f"DELETE FROM {table} {self._where_clause()}", tuple(self._params))

    # -- Execution --

    async def get(self) -> list[dict[str, Any]]:
        """Run the SELECT and return every row."""
        statement = self.compile_select()
        self._consume()
        return await self._db.fetch(statement.sql, *statement.params)

    async def first(self) -> dict[str, Any] | None:
        """Run the SELECT with ``LIMIT 1``; return the row or ``None``."""
        statement = self.compile_first()
        self._consume()
        return await self._db.fetch_one(statement.sql, *statement.params)

    async def insert(self, data: Mapping[str, Any]) -> bool:
        """Insert one row. Returns True once the statement has run."""
        return await self._run(self.compile_insert(data))

    async def update(self, data: Mapping[str, Any]) -> bool:
        """Update the rows matching the WHERE conditions.

        Raises ``GuardError`` without touching the database if no
        ``where()`` call came first.
        """
        return await self._run(self.compile_update(data))

    async def delete(self) -> bool:
        """Delete the rows matching the WHERE conditions.

        Raises ``GuardError`` without touching the database if no
        ``where()`` call came first.
        """
        return await self._run(self.compile_delete())

    @property
    def rowcount(self) -> int | None:
        """Rows affected by the insert/update/delete that consumed this builder."""
        return self._rowcount

    @property
    def consumed(self) -> bool:
        return self._consumed

    # -- Internals --

    async def _run(self, statement: Statement) -> bool:
        self._consume()
        self._rowcount = await self._db.execute(statement.sql, *statement.params)
        return True

    def _where_clause(self) -> str:
        return "WHERE " + " AND ".join(self._wheres)

    def _guard(self, operation: str, plural: str) -> None:
        if not self._wheres:
            msg = f"{operation} requires at least one WHERE condition to prevent mass {plural}."
            raise GuardError(msg)

    def _require_table(self, operation: str) -> str:
        if self._table is None:
            msg = f"No table set; call table() before {operation}()"
            raise InvalidArgument(msg)
        return self._table

    @staticmethod
    def _data_columns(data: Mapping[str, Any], operation: str) -> list[str]:
        if not data:
            msg = f"{operation}() needs at least one column"
            raise InvalidArgument(msg)
        return [_identifier(column, "column") for column in data]

    def _check_usable(self) -> None:
        if self._consumed:
            msg = "This QueryBuilder already ran its statement; create a new one"
            raise BuilderConsumedError(msg)

    def _consume(self) -> None:
        self._consumed = True
