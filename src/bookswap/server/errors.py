"""Map exceptions raised during dispatch to responses."""

import logging

from bookswap.errors import HTTPError
from bookswap.http.request import Request
from bookswap.http.response import Response

logger = logging.getLogger("bookswap.server")

GENERIC_ERROR_MESSAGE = "An error occurred, please try again later."


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Render an ``HTTPError`` raised by a handler as its status response."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    response = Response(body=exc.detail or f"Error {exc.status}", status=exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def handle_internal_error(exc: Exception, request: Request, *, debug: bool) -> Response:
    """Log the failure and build the 500 response.

    Debug mode shows the exception, the failing source lines and the
    traceback. Otherwise the body is a fixed message and the details
    go to the ``bookswap.server`` log only.
    """
    logger.exception("500 %s %s", request.method, request.path, exc_info=exc)

    if debug:
        from bookswap.server.debug_page import render_debug_page

        return Response(body=render_debug_page(exc, request), status=500)

    return Response(body=GENERIC_ERROR_MESSAGE, status=500)
