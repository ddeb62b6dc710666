"""bookswap exception hierarchy.

Shared across Router, App, handler, and data layer so every module
raises and catches the same types.
"""

from dataclasses import dataclass


class BookswapError(Exception):
    """Base for all bookswap-specific errors."""


class ConfigurationError(BookswapError):
    """Raised when configuration or route definitions are invalid.

    Typically raised at startup, while config and routes are loaded.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(BookswapError):
    """An error that maps directly to an HTTP status code.

    Raised by handlers that want to bail out with a status. The ASGI
    handler catches these and renders the matching status response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: the requested resource does not exist.

    The router itself reports unmatched paths as a plain 404 response;
    handlers raise this when a path matched but the record behind it
    is missing.
    """

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
