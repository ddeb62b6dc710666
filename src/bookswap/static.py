"""Static asset serving for a reserved URL prefix.

The router hands every path under the prefix to ``StaticFiles.serve``
and routes nothing else there. A missing file is a 404, never a
fall-through to application routes.
"""

import mimetypes
from pathlib import Path

from bookswap.http.response import Response

# Explicit Content-Type table; anything else goes through mimetypes.
MIME_TYPES: dict[str, str] = {
    "css": "text/css",
    "js": "application/javascript",
    "json": "application/json",
    "webp": "image/webp",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "woff": "font/woff",
    "woff2": "font/woff2",
    "ttf": "font/ttf",
    "eot": "application/vnd.ms-fontobject",
    "otf": "font/otf",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ogg": "audio/ogg",
}

DEFAULT_MIME_TYPE = "application/octet-stream"


def content_type_for(file_path: Path) -> str:
    """Content-Type for *file_path*: fixed table, then mimetypes, then binary."""
    extension = file_path.suffix.lstrip(".").lower()
    if extension in MIME_TYPES:
        return MIME_TYPES[extension]
    guessed, _ = mimetypes.guess_type(file_path.name)
    return guessed or DEFAULT_MIME_TYPE


class StaticFiles:
    """Serves files from a directory for paths under a URL prefix.

    Security: resolves symlinks and verifies the final path is within
    the configured directory to prevent path traversal.

    Usage::

        static = StaticFiles(directory="./public", prefix="/public")
        router = Router(static=static)
    """

    __slots__ = ("_cache_control", "_directory", "_prefix")

    def __init__(
        self,
        directory: str | Path,
        prefix: str = "/public",
        *,
        cache_control: str = "public, max-age=3600",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._cache_control = cache_control
        self._prefix = "/" + prefix.strip("/")

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def directory(self) -> Path:
        return self._directory

    def handles(self, path: str) -> bool:
        """True if *path* lies under the reserved prefix."""
        return path == self._prefix or path.startswith(self._prefix + "/")

    def serve(self, path: str) -> Response:
        """Build the response for a path under the prefix."""
        relative = path[len(self._prefix) :].lstrip("/")
        if not relative:
            return _not_found()

        file_path = (self._directory / relative).resolve()
        if not file_path.is_relative_to(self._directory):
            return Response(body="Forbidden", status=403)
        if not file_path.is_file():
            return _not_found()

        body = file_path.read_bytes()
        return Response(body=body, content_type=content_type_for(file_path)).with_header(
            "Cache-Control", self._cache_control
        )


def _not_found() -> Response:
    return Response(body="404 - Page not found", status=404)
