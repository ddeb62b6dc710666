"""Route definitions loaded from a mapping or a TOML file.

A definition maps a path pattern to a handler. Handlers are either
callables or ``"ControllerName@method"`` strings::

    [routes]
    "/" = "HomeController@index"
    "/connexion" = "UserController@login"
    "/books/{id:int}" = "BookController@show"

Controller names resolve against an explicit registry of zero-argument
factories. Each controller is instantiated once per load.
"""

import logging
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from bookswap.errors import ConfigurationError
from bookswap.routing.router import Router

logger = logging.getLogger("bookswap.routing")

ControllerFactory = Callable[[], object]


def read_routes_file(path: str | Path) -> dict[str, Any]:
    """Read the ``[routes]`` table of a TOML route file."""
    file_path = Path(path)
    if not file_path.is_file():
        msg = f"Routes file not found: {file_path}"
        raise ConfigurationError(msg)

    try:
        with file_path.open("rb") as fh:
            document = tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid routes file {file_path}: {exc}"
        raise ConfigurationError(msg) from exc

    routes = document.get("routes")
    if not isinstance(routes, dict):
        msg = f"Invalid routes file {file_path}. Expected a [routes] table of path = handler."
        raise ConfigurationError(msg)
    return routes


def resolve_handler(
    ref: object,
    controllers: Mapping[str, ControllerFactory],
    instances: dict[str, object],
) -> Callable[..., Any]:
    """Turn a route definition value into a callable handler.

    *instances* caches controllers already built during this load.
    """
    if isinstance(ref, str):
        controller_name, sep, method_name = ref.partition("@")
        if not sep or not controller_name or not method_name:
            msg = f"Invalid handler reference {ref!r}. Expected 'ControllerName@method'."
            raise ConfigurationError(msg)

        if controller_name not in instances:
            factory = controllers.get(controller_name)
            if factory is None:
                msg = f"Unknown controller {controller_name!r} in handler {ref!r}"
                raise ConfigurationError(msg)
            instances[controller_name] = factory()

        handler = getattr(instances[controller_name], method_name, None)
        if handler is None or not callable(handler):
            msg = f"Controller {controller_name!r} has no method {method_name!r}"
            raise ConfigurationError(msg)
        return handler

    if callable(ref):
        return ref

    msg = f"Invalid route handler {ref!r}. Expected a callable or 'ControllerName@method'."
    raise ConfigurationError(msg)


def load_routes(
    router: Router,
    source: Mapping[str, Any] | str | Path,
    *,
    controllers: Mapping[str, ControllerFactory] | None = None,
) -> int:
    """Register every route in *source* on *router*.

    *source* is either a mapping of path pattern to handler, or the path
    to a TOML routes file. Returns the number of routes registered.

    Raises ``ConfigurationError`` for a missing or malformed source and
    for handlers that cannot be resolved.
    """
    if isinstance(source, (str, Path)):
        definitions: Mapping[str, Any] = read_routes_file(source)
        origin = str(source)
    elif isinstance(source, Mapping):
        definitions = source
        origin = "<mapping>"
    else:
        msg = f"Invalid route definitions: expected a mapping of path to handler, got {type(source).__name__}"
        raise ConfigurationError(msg)

    registry = controllers or {}
    instances: dict[str, object] = {}
    for pattern, ref in definitions.items():
        if not isinstance(pattern, str):
            msg = f"Invalid route path {pattern!r} in {origin}"
            raise ConfigurationError(msg)
        router.add_route(pattern, resolve_handler(ref, registry, instances))

    logger.debug("Loaded %d routes from %s", len(definitions), origin)
    return len(definitions)
