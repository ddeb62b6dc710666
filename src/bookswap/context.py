"""Request-scoped context via ContextVar.

The ASGI handler sets ``request_var`` before dispatch and resets it
afterwards, so handlers registered without parameters can still read
the query string and headers of the request they are serving::

    from bookswap.context import get_request

    def search():
        q = get_request().query.get("q", "")
"""

from contextvars import ContextVar

from bookswap.http.request import Request

request_var: ContextVar[Request] = ContextVar("bookswap_request")
"""The current request. Set by the ASGI handler before dispatch."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request.
    """
    return request_var.get()
