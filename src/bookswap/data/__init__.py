"""Async SQLite access for bookswap.

SQL in, row dicts out; ``map_row`` turns rows into frozen dataclass
entities. Not an ORM::

    from bookswap.data import Database, QueryBuilder

    db = Database("sqlite:///bookswap.db")
    rows = await QueryBuilder(db).table("book").where("user_id", "=", 3).get()
"""

from bookswap.data._mapping import map_row, map_rows
from bookswap.data.database import Database
from bookswap.data.errors import (
    BuilderConsumedError,
    DataError,
    DriverNotInstalledError,
    GuardError,
    InvalidArgument,
    MigrationError,
    QueryError,
)
from bookswap.data.migrate import MigrationResult, migrate
from bookswap.data.query import QueryBuilder, Statement
from bookswap.data.repository import Repository

__all__ = [
    "BuilderConsumedError",
    "DataError",
    "Database",
    "DriverNotInstalledError",
    "GuardError",
    "InvalidArgument",
    "MigrationError",
    "MigrationResult",
    "QueryBuilder",
    "QueryError",
    "Repository",
    "Statement",
    "map_row",
    "map_rows",
    "migrate",
]
