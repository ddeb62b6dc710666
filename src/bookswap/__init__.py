"""bookswap: a small book-exchange web application on a hand-rolled async core.

Basic usage::

    from bookswap import App

    app = App()

    @app.route("/books/{id:int}")
    async def show(id: int):
        return f"Book {id}"

The exchange application itself::

    from bookswap.exchange import create_app
    app = create_app(load_config("bookswap.toml"))
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "BookswapError",
    "ConfigurationError",
    "HTTPError",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "Router",
    "View",
    "get_request",
    "load_config",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import bookswap`` fast while providing a clean top-level API.
    """
    if name == "App":
        from bookswap.app import App

        return App

    if name in ("AppConfig", "load_config"):
        from bookswap import config

        return getattr(config, name)

    if name == "Request":
        from bookswap.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from bookswap.http import response

        return getattr(response, name)

    if name == "Router":
        from bookswap.routing.router import Router

        return Router

    if name == "View":
        from bookswap.templating.view import View

        return View

    if name in ("BookswapError", "ConfigurationError", "HTTPError", "NotFound"):
        from bookswap import errors

        return getattr(errors, name)

    if name == "get_request":
        from bookswap.context import get_request

        return get_request

    msg = f"module 'bookswap' has no attribute {name!r}"
    raise AttributeError(msg)
