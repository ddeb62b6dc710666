"""Page rendering inside a layout.

A ``View`` carries the page title, the layout name and the stylesheets
the layout should link::

    view = View("Connexion").add_style("auth")
    return view.render(env, "pages/auth", page_type="login")

``render`` renders ``pages/auth.html`` with the given data, then
``layouts/main.html`` with ``title``, ``styles`` and ``content``.
"""

from typing import Any, Self

from kida import Environment
from kida.utils.html import Markup

from bookswap.http.response import Response


def template_name(name: str) -> str:
    """``pages/home`` -> ``pages/home.html``; names with a suffix pass through."""
    return name if name.endswith(".html") else f"{name}.html"


class View:
    __slots__ = ("_styles", "layout", "title")

    def __init__(self, title: str, layout: str = "main") -> None:
        self.title = title
        self.layout = layout
        self._styles: list[str] = []

    @property
    def styles(self) -> tuple[str, ...]:
        return tuple(self._styles)

    def add_style(self, name: str) -> Self:
        """Link ``css/<name>.css`` from the layout. Adding a name twice is a no-op."""
        if name not in self._styles:
            self._styles.append(name)
        return self

    def render_partial(self, env: Environment, page: str, /, **data: Any) -> str:
        """Render *page* alone, without the layout."""
        return env.get_template(template_name(page)).render(data)

    def render(self, env: Environment, page: str, /, **data: Any) -> Response:
        """Render *page*, then wrap it in ``layouts/<layout>``.

        The page sees ``title`` unless *data* supplies its own.
        """
        content = self.render_partial(env, page, **{"title": self.title, **data})
        layout = env.get_template(template_name(f"layouts/{self.layout}"))
        body = layout.render(
            {
                "title": self.title,
                "styles": self.styles,
                "content": Markup(content),
            }
        )
        return Response(body=body)
