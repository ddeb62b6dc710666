"""Link builders for templates and controllers.

Both take the configured ``base_url`` explicitly; the template
environment binds it once so templates call ``action_url("connexion")``.
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode


def action_url(base_url: str, action: str, params: Mapping[str, Any] | None = None) -> str:
    """``{base_url}/{action}`` plus an encoded query string when *params* is non-empty.

    >>> action_url("", "profile", {"id": 3})
    '/profile?id=3'
    """
    url = f"{base_url.rstrip('/')}/{action.lstrip('/')}"
    if params:
        url += "?" + urlencode(params, doseq=True)
    return url


def img_url(base_url: str, path: str, static_url: str = "/public") -> str:
    """URL of an image under the static prefix's ``img/`` directory."""
    prefix = "/" + static_url.strip("/")
    return f"{base_url.rstrip('/')}{prefix}/img/{path.lstrip('/')}"


def css_url(base_url: str, name: str, static_url: str = "/public") -> str:
    """URL of ``css/<name>.css`` under the static prefix."""
    prefix = "/" + static_url.strip("/")
    return f"{base_url.rstrip('/')}{prefix}/css/{name}.css"


def path_url(base_url: str, *segments: object) -> str:
    """Join *segments* into a path under *base_url*.

    >>> path_url("", "books", 42)
    '/books/42'
    """
    path = "/".join(str(segment).strip("/") for segment in segments)
    return action_url(base_url, path)
