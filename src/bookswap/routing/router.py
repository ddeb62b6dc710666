"""Router with literal lookup and ordered parametric matching.

Literal paths resolve through a dict. Only patterns containing
placeholders pay for regex scanning, tried in registration order.
"""

import logging
import re
from collections.abc import Callable, Mapping
from typing import Any

from bookswap._internal.invoke import invoke
from bookswap.errors import ConfigurationError
from bookswap.http.request import Request
from bookswap.http.response import Response, to_response
from bookswap.routing.params import convert_params, normalize_type
from bookswap.routing.route import Route, RouteMatch
from bookswap.static import StaticFiles

logger = logging.getLogger("bookswap.routing")

_PLACEHOLDER = re.compile(r"\{([^{}]*)\}")
_PARAM_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")

NOT_FOUND_BODY = "404 - Page not found"


def normalize_path(path: str) -> str:
    """Exactly one leading slash, no trailing slash (root stays ``/``)."""
    trimmed = path.strip("/")
    return "/" + trimmed if trimmed else "/"


def compile_pattern(
    pattern: str,
    params: Mapping[str, str | type] | None = None,
) -> tuple[re.Pattern[str] | None, tuple[str, ...], dict[str, str]]:
    """Compile a path template into an anchored matcher.

    Examples::

        "/login"              -> (None, (), {})
        "/books/{id}"         -> (^/books/([^/]+)$, ("id",), {"id": "str"})
        "/books/{id:int}"     -> (^/books/([^/]+)$, ("id",), {"id": "int"})
        "/books/{id}", {"id": int} -> same as the inline form

    Returns ``(None, (), {})`` for literal patterns.
    """
    names: list[str] = []
    types: dict[str, str] = {}
    regex_parts: list[str] = []
    cursor = 0

    for found in _PLACEHOLDER.finditer(pattern):
        inner = found.group(1)
        name, _, declared = inner.partition(":")
        if not _PARAM_NAME.fullmatch(name):
            msg = f"Invalid path parameter {found.group(0)!r} in route {pattern!r}"
            raise ConfigurationError(msg)
        if name in types:
            msg = f"Duplicate path parameter {name!r} in route {pattern!r}"
            raise ConfigurationError(msg)
        names.append(name)
        types[name] = normalize_type(declared or "str")
        regex_parts.append(re.escape(pattern[cursor : found.start()]))
        regex_parts.append("([^/]+)")
        cursor = found.end()

    for name, declared in (params or {}).items():
        if name not in types:
            msg = f"Parameter {name!r} is declared but does not appear in route {pattern!r}"
            raise ConfigurationError(msg)
        types[name] = normalize_type(declared)

    if not names:
        return None, (), {}

    regex_parts.append(re.escape(pattern[cursor:]))
    regex = re.compile("^" + "".join(regex_parts) + "$")
    return regex, tuple(names), types


class Router:
    """Maps request paths to handlers.

    Usage::

        router = Router(static=StaticFiles("public", prefix="/public"))
        router.add_route("/", home)
        router.add_route("/books/{id:int}", show_book)
        router.freeze()
        response = await router.dispatch("/books/42")   # show_book(id=42)

    Precedence: an exact literal path always wins. Dynamic routes are
    tried in registration order and the first match wins, so register
    more specific templates before general ones that overlap them.
    """

    __slots__ = ("_dynamic", "_frozen", "_literal", "_static")

    def __init__(self, *, static: StaticFiles | None = None) -> None:
        self._literal: dict[str, Route] = {}
        # (compiled matcher, route) in registration order
        self._dynamic: list[tuple[re.Pattern[str], Route]] = []
        self._static = static
        self._frozen = False

    # -- Registration --

    def add_route(
        self,
        pattern: str,
        handler: Callable[..., Any],
        *,
        params: Mapping[str, str | type] | None = None,
    ) -> Route:
        """Register *handler* for *pattern*. Must be called before ``freeze()``.

        Re-registering a literal path replaces the earlier handler.
        Dynamic patterns are never deduplicated: an earlier registration
        keeps priority over a later identical or overlapping one.
        """
        if self._frozen:
            msg = f"Cannot add route {pattern!r}: the router is frozen."
            raise ConfigurationError(msg)
        if not callable(handler):
            msg = f"Handler for route {pattern!r} is not callable: {handler!r}"
            raise ConfigurationError(msg)

        path = normalize_path(pattern)
        regex, names, types = compile_pattern(path, params)

        if regex is None:
            route = Route(pattern=path, handler=handler)
            if path in self._literal:
                logger.debug("Replacing handler for %s", path)
            self._literal[path] = route
        else:
            route = Route(
                pattern=path,
                handler=handler,
                param_names=names,
                param_types=types,
                regex=regex,
            )
            self._dynamic.append((regex, route))
        return route

    def freeze(self) -> None:
        """No more routes can be added after this."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def static(self) -> StaticFiles | None:
        return self._static

    @property
    def routes(self) -> list[Route]:
        """All routes: literal ones first, then dynamic in registration order."""
        return [*self._literal.values(), *(route for _, route in self._dynamic)]

    # -- Matching --

    def match(self, path: str) -> RouteMatch | None:
        """Resolve *path* to a route and its raw captured parameters.

        Returns ``None`` when nothing matches.
        """
        path = normalize_path(path)

        route = self._literal.get(path)
        if route is not None:
            return RouteMatch(route=route, path_params={})

        for regex, route in self._dynamic:
            found = regex.match(path)
            if found is not None:
                params = dict(zip(route.param_names, found.groups(), strict=True))
                return RouteMatch(route=route, path_params=params)

        return None

    # -- Dispatch --

    async def dispatch(self, request: Request | str) -> Response:
        """Serve a request: static asset, matched handler, or a 404 response.

        *request* is a ``Request`` or a bare path string.

        Unmatched paths are a normal outcome and never raise. Errors
        raised by the handler itself propagate to the caller.
        """
        path = normalize_path(request if isinstance(request, str) else request.path)

        if self._static is not None and self._static.handles(path):
            return self._static.serve(path)

        matched = self.match(path)
        if matched is None:
            logger.debug("404 %s", path)
            return not_found()

        route = matched.route
        if not route.is_dynamic:
            return to_response(await invoke(route.handler))

        try:
            kwargs = convert_params(matched.path_params, route.param_types)
        except ValueError:
            logger.debug("404 %s (parameter conversion failed for %s)", path, route.pattern)
            return not_found()

        return to_response(await invoke(route.handler, **kwargs))


def not_found() -> Response:
    """The router's 404 outcome."""
    return Response(body=NOT_FOUND_BODY, status=404)
