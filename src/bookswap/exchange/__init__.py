"""The book-exchange application built on the bookswap core.

``create_app()`` wires config, database, templates, controllers and
routes explicitly and returns a ready-to-serve ASGI ``App``.
"""

from bookswap.exchange.factory import create_app

__all__ = ["create_app"]
