"""Table-bound data access built on QueryBuilder.

A repository names one table, its primary key and the entity its rows
hydrate into::

    class BookRepository(Repository[Book]):
        table = "book"
        entity = Book

    books = BookRepository(db)
    book = await books.find(3)

Every operation starts from ``query()``, which returns a fresh
builder, so no state leaks from one call into the next.
"""

from collections.abc import Mapping
from typing import Any, ClassVar

from bookswap.data._mapping import map_row, map_rows
from bookswap.data.database import Database
from bookswap.data.query import QueryBuilder
from bookswap.errors import ConfigurationError


class Repository[E]:
    """Base for table repositories. Subclasses set ``table`` and ``entity``."""

    table: ClassVar[str]
    entity: ClassVar[type[Any]]
    primary_key: ClassVar[str] = "id"

    __slots__ = ("_db",)

    def __init__(self, db: Database) -> None:
        cls = type(self)
        if not getattr(cls, "table", None):
            msg = f"{cls.__name__} must define a 'table' class attribute"
            raise ConfigurationError(msg)
        if getattr(cls, "entity", None) is None:
            msg = f"{cls.__name__} must define an 'entity' class attribute"
            raise ConfigurationError(msg)
        self._db = db

    @property
    def db(self) -> Database:
        return self._db

    def query(self) -> QueryBuilder:
        """A new builder targeting this repository's table."""
        return QueryBuilder(self._db, self.table)

    def hydrate(self, row: Mapping[str, Any]) -> E:
        return map_row(self.entity, row)

    def hydrate_all(self, rows: list[dict[str, Any]]) -> list[E]:
        return map_rows(self.entity, rows)

    async def find(self, key: Any) -> E | None:
        """The row whose primary key equals *key*, or ``None``."""
        row = await self.query().where(self.primary_key, "=", key).first()
        return None if row is None else self.hydrate(row)

    async def all(self) -> list[E]:
        return self.hydrate_all(await self.query().get())

    async def save(self, data: Mapping[str, Any]) -> bool:
        """Write *data* as a row.

        With a primary key the matching row is updated. When no row has
        that key, or *data* carries no key, the row is inserted.
        """
        key = data.get(self.primary_key)
        if key is not None:
            builder = self.query().where(self.primary_key, "=", key)
            await builder.update(data)
            if builder.rowcount:
                return True
        return await self.query().insert(data)

    async def delete(self, key: Any) -> bool:
        return await self.query().where(self.primary_key, "=", key).delete()
