"""ASGI handler: translates ASGI scope/messages to bookswap types.

The only component that touches raw ASGI http messages. Builds the
Request, dispatches it through the router and sends the Response back.
"""

from contextvars import Token

from bookswap._internal.asgi import Receive, Scope, Send
from bookswap.context import request_var
from bookswap.errors import HTTPError
from bookswap.http.request import Request
from bookswap.http.response import Response
from bookswap.routing.router import Router
from bookswap.server.errors import handle_http_error, handle_internal_error
from bookswap.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    debug: bool,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    token: Token[Request] = request_var.set(request)

    response: Response
    try:
        response = await router.dispatch(request)
    except HTTPError as exc:
        response = handle_http_error(exc, request)
    except Exception as exc:
        response = handle_internal_error(exc, request, debug=debug)
    finally:
        request_var.reset(token)

    await send_response(response, send, head=request.method == "HEAD")
