"""Exchange controllers.

Each controller receives the template environment and the repositories
it reads from. Handler methods return a ``Response``; unknown records
raise ``NotFound``.
"""

from dataclasses import dataclass

from kida import Environment

from bookswap.errors import NotFound
from bookswap.exchange.entities import Book, User
from bookswap.exchange.repositories import BookRepository, BookStatusRepository, UserRepository
from bookswap.http.response import Response
from bookswap.templating.view import View

HOME_BOOK_COUNT = 8


@dataclass(frozen=True, slots=True)
class BookRow:
    """A book with its status name, as listed on the profile page."""

    book: Book
    status: str
    available: bool


class HomeController:
    __slots__ = ("_books", "_templates")

    def __init__(self, templates: Environment, books: BookRepository) -> None:
        self._templates = templates
        self._books = books

    async def index(self) -> Response:
        books = await self._books.find_available(limit=HOME_BOOK_COUNT)
        return View("Home Page").render(
            self._templates,
            "pages/home",
            paragraph="Welcome to our home page!",
            books=books,
        )


class UserController:
    __slots__ = ("_books", "_statuses", "_templates", "_users")

    def __init__(
        self,
        templates: Environment,
        users: UserRepository,
        books: BookRepository,
        statuses: BookStatusRepository,
    ) -> None:
        self._templates = templates
        self._users = users
        self._books = books
        self._statuses = statuses

    def login(self) -> Response:
        view = View("Connexion").add_style("auth")
        return view.render(self._templates, "pages/auth", page_type="login")

    def register(self) -> Response:
        view = View("Inscription").add_style("auth")
        return view.render(self._templates, "pages/auth", page_type="register")

    async def profile(self, id: int) -> Response:
        user = await self._find_user(id)
        names = {status.id: status.name for status in await self._statuses.all_statuses()}
        rows = [
            BookRow(book=book, status=names.get(book.status_id, ""), available=book.available)
            for book in await self._books.find_by_user(user.id)
        ]
        view = View("Mon compte").add_style("profile")
        return view.render(self._templates, "pages/profile", user=user, rows=rows, error=None)

    async def _find_user(self, user_id: int) -> User:
        user = await self._users.find_user_by_id(user_id)
        if user is None:
            raise NotFound("Utilisateur introuvable")
        return user


class BookController:
    __slots__ = ("_books", "_statuses", "_templates", "_users")

    def __init__(
        self,
        templates: Environment,
        books: BookRepository,
        users: UserRepository,
        statuses: BookStatusRepository,
    ) -> None:
        self._templates = templates
        self._books = books
        self._users = users
        self._statuses = statuses

    async def show(self, id: int) -> Response:
        book = await self._books.find_book_by_id(id)
        if book is None:
            raise NotFound("Livre introuvable")
        owner = await self._users.find_user_by_id(book.user_id)
        status = await self._statuses.find_status_by_id(book.status_id)
        view = View(book.title).add_style("book")
        return view.render(
            self._templates,
            "pages/book",
            book=book,
            owner=owner,
            status=status.name if status is not None else "",
        )
