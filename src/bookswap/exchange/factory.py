"""Explicit wiring of the exchange application."""

from pathlib import Path

from bookswap.app import App
from bookswap.config import AppConfig
from bookswap.exchange.controllers import BookController, HomeController, UserController
from bookswap.exchange.repositories import BookRepository, BookStatusRepository, UserRepository

PACKAGE_DIR = Path(__file__).parent
TEMPLATES_DIR = PACKAGE_DIR / "templates"
MIGRATIONS_DIR = PACKAGE_DIR / "migrations"
ROUTES_FILE = PACKAGE_DIR / "routes.toml"


def create_app(config: AppConfig | None = None) -> App:
    """Build the exchange app.

    Bundled templates are used after ``config.template_dir``, so a
    project can override any page. ``routes_file`` and
    ``migrations_dir`` fall back to the bundled ones when unset.
    """
    config = config or AppConfig()
    app = App(
        config,
        migrations=config.migrations_dir or MIGRATIONS_DIR,
        template_dirs=[TEMPLATES_DIR],
    )

    users = UserRepository(app.db)
    books = BookRepository(app.db)
    statuses = BookStatusRepository(app.db)

    controllers = {
        "HomeController": lambda: HomeController(app.templates, books),
        "UserController": lambda: UserController(app.templates, users, books, statuses),
        "BookController": lambda: BookController(app.templates, books, users, statuses),
    }
    app.load_routes(config.routes_file or ROUTES_FILE, controllers=controllers)
    return app
