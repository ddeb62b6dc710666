"""``bookswap routes``: list registered routes.

Prints PATH, PARAMS and HANDLER for every route, literal routes first,
then dynamic ones in the order they are tried.
"""

import argparse
from typing import Any

from bookswap.cli._app import build_app
from bookswap.routing.route import Route


def handler_name(handler: Any) -> str:
    """``Controller@method`` for bound methods, the qualified name otherwise."""
    owner = getattr(handler, "__self__", None)
    if owner is not None:
        return f"{type(owner).__name__}@{handler.__name__}"
    return getattr(handler, "__qualname__", repr(handler))


def describe_params(route: Route) -> str:
    return ", ".join(f"{name}:{route.param_types[name]}" for name in route.param_names)


def run_routes(args: argparse.Namespace) -> None:
    app = build_app(args)
    routes = app.router.routes
    if not routes:
        print("No routes registered.")
        return

    rows = [(route.pattern, describe_params(route), handler_name(route.handler)) for route in routes]

    max_path = max(4, *(len(r[0]) for r in rows))
    max_params = max(6, *(len(r[1]) for r in rows))

    fmt = f"{{:<{max_path}}}  {{:<{max_params}}}  {{}}"
    print(fmt.format("PATH", "PARAMS", "HANDLER"))
    sep_len = max_path + max_params + 4 + max(len(r[2]) for r in rows)
    print("-" * min(sep_len, 80))
    for path, params, name in rows:
        print(fmt.format(path, params, name))
