"""Translate a bookswap Response into ASGI send() calls."""

from bookswap._internal.asgi import Send
from bookswap.http.response import Response


def _body_allowed(status: int) -> bool:
    # 1xx, 204 and 304 responses carry no body.
    return not (100 <= status < 200 or status in {204, 304})


def raw_headers(response: Response, body_length: int) -> list[tuple[bytes, bytes]]:
    headers: list[tuple[bytes, bytes]] = [
        (b"content-type", response.content_type.encode("latin-1")),
    ]
    headers.extend(
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in response.headers
    )
    headers.append((b"content-length", str(body_length).encode("latin-1")))
    return headers


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Send *response* as one start message and one body message.

    With ``head=True`` the headers describe the full body but none is sent.
    """
    body = response.body_bytes if _body_allowed(response.status) else b""
    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers(response, len(body)),
        }
    )
    await send({"type": "http.response.body", "body": b"" if head else body})
