"""Repositories for the exchange tables."""

from bookswap.data.repository import Repository
from bookswap.exchange.entities import AVAILABLE_STATUS_ID, Book, BookStatus, User


class UserRepository(Repository[User]):
    table = "user"
    entity = User

    async def find_user_by_email(self, email: str) -> User | None:
        row = await self.query().where("email", "=", email).first()
        return None if row is None else self.hydrate(row)

    async def find_user_by_id(self, user_id: int) -> User | None:
        return await self.find(user_id)


class BookStatusRepository(Repository[BookStatus]):
    table = "book_status"
    entity = BookStatus

    async def find_status_by_id(self, status_id: int) -> BookStatus | None:
        return await self.find(status_id)

    async def all_statuses(self) -> list[BookStatus]:
        rows = await self.query().order_by("id").get()
        return self.hydrate_all(rows)


class BookRepository(Repository[Book]):
    table = "book"
    entity = Book

    async def find_book_by_id(self, book_id: int) -> Book | None:
        return await self.find(book_id)

    async def find_by_user(self, user_id: int) -> list[Book]:
        """Books owned by *user_id*, oldest first."""
        rows = await self.query().where("user_id", "=", user_id).order_by("id").get()
        return self.hydrate_all(rows)

    async def find_available(self, *, limit: int = 0, offset: int = 0) -> list[Book]:
        """Available books, newest first."""
        rows = await (
            self.query()
            .where("status_id", "=", AVAILABLE_STATUS_ID)
            .order_by("id", "desc")
            .limit(limit)
            .offset(offset)
            .get()
        )
        return self.hydrate_all(rows)
