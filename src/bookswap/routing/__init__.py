"""Routing: literal lookup plus ordered parametric matching.

Routes are registered during setup (directly or from a route file)
and the router is frozen before the first request.
"""

from bookswap.routing.loader import load_routes, resolve_handler
from bookswap.routing.route import Route, RouteMatch
from bookswap.routing.router import Router

__all__ = [
    "Route",
    "RouteMatch",
    "Router",
    "load_routes",
    "resolve_handler",
]
