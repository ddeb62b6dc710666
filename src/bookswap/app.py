"""bookswap application class.

Mutable during setup (route registration, lifecycle hooks).
Frozen when the first ASGI scope arrives: the router accepts no more
routes after that.
"""

import logging
import threading
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Any

from kida import Environment

from bookswap._internal.asgi import Receive, Scope, Send
from bookswap._internal.invoke import invoke
from bookswap.config import AppConfig
from bookswap.data.database import Database
from bookswap.data.migrate import migrate
from bookswap.routing.loader import ControllerFactory, load_routes
from bookswap.routing.route import Route
from bookswap.routing.router import Router
from bookswap.server.handler import handle_request
from bookswap.static import StaticFiles
from bookswap.templating.integration import create_environment

logger = logging.getLogger("bookswap.server")

Handler = Callable[..., Any]

_ERROR_LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


class App:
    """The bookswap application.

    Owns one ``AppConfig``, one ``Router`` (with static file serving
    when ``config.static_dir`` is set), one ``Database`` and one kida
    ``Environment``. Nothing is global: collaborators that need one of
    these receive it explicitly.

    Usage::

        app = App(AppConfig(debug=True))

        @app.route("/books/{id:int}")
        async def show(id: int):
            ...

    Thread safety:
        The freeze transition uses a Lock + double-check so exactly one
        thread freezes the router even if several ASGI calls race on
        the first request.
    """

    __slots__ = (
        "_db",
        "_error_log_handler",
        "_freeze_lock",
        "_frozen",
        "_kida_env",
        "_migrations_dir",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "_template_dirs",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        db: Database | str | None = None,
        migrations: str | Path | None = None,
        kida_env: Environment | None = None,
        template_dirs: Iterable[str | Path] = (),
    ) -> None:
        self.config: AppConfig = config or AppConfig()

        static = None
        if self.config.static_dir is not None:
            static = StaticFiles(self.config.static_dir, prefix=self.config.static_url)
        self._router = Router(static=static)

        # Accepts a Database instance or a connection URL string.
        if isinstance(db, Database):
            self._db = db
        else:
            self._db = Database(db or self.config.db_url, echo=self.config.db_echo)

        self._migrations_dir = migrations if migrations is not None else self.config.migrations_dir
        self._kida_env = kida_env
        self._template_dirs = tuple(template_dirs)
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._error_log_handler: logging.Handler | None = None
        self._frozen = False
        self._freeze_lock = threading.Lock()

    # -- Collaborators --

    @property
    def router(self) -> Router:
        return self._router

    @property
    def db(self) -> Database:
        return self._db

    @property
    def templates(self) -> Environment:
        """The kida environment, created on first use."""
        if self._kida_env is None:
            self._kida_env = create_environment(self.config, extra_dirs=self._template_dirs)
        return self._kida_env

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        params: Mapping[str, str | type] | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``{name}`` or ``{name:int}`` for
                path parameters.
            params: Optional explicit parameter types, e.g. ``{"id": int}``.
        """

        def decorator(func: Handler) -> Handler:
            self._router.add_route(path, func, params=params)
            return func

        return decorator

    def add_route(
        self,
        path: str,
        handler: Handler,
        *,
        params: Mapping[str, str | type] | None = None,
    ) -> Route:
        return self._router.add_route(path, handler, params=params)

    def load_routes(
        self,
        source: Mapping[str, Any] | str | Path,
        *,
        controllers: Mapping[str, ControllerFactory] | None = None,
    ) -> int:
        """Register the routes of a mapping or TOML file. See ``bookswap.routing.load_routes``."""
        return load_routes(self._router, source, controllers=controllers)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        after the database is connected and migrated.
        """
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator.

        Hooks run in registration order, before the database disconnects.
        """
        self._shutdown_hooks.append(func)
        return func

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            debug=self.config.debug,
        )

    async def startup(self) -> None:
        """Connect, migrate and run startup hooks."""
        self._ensure_frozen()
        self._configure_logging()
        await self._db.connect()
        if self._migrations_dir is not None:
            result = await migrate(self._db, self._migrations_dir)
            logger.info("%s", result.summary)
        for hook in self._startup_hooks:
            await invoke(hook)

    async def shutdown(self) -> None:
        """Run shutdown hooks and disconnect."""
        try:
            for hook in self._shutdown_hooks:
                await invoke(hook)
        finally:
            await self._db.disconnect()
            self._detach_error_log()

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _configure_logging(self) -> None:
        logging.getLogger("bookswap").setLevel(self.config.log_level.upper())
        if self.config.debug or self.config.error_log is None or self._error_log_handler:
            return
        handler = logging.FileHandler(self.config.error_log, encoding="utf-8")
        handler.setLevel(logging.ERROR)
        handler.setFormatter(logging.Formatter(_ERROR_LOG_FORMAT))
        logger.addHandler(handler)
        self._error_log_handler = handler

    def _detach_error_log(self) -> None:
        if self._error_log_handler is None:
            return
        logger.removeHandler(self._error_log_handler)
        self._error_log_handler.close()
        self._error_log_handler = None

    def _ensure_frozen(self) -> None:
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._router.freeze()
            self._frozen = True
