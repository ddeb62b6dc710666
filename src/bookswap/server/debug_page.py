"""Development error page.

Plain f-strings only: a broken template setup must not stop the error
from being reported. Shows the exception message, the file and line
where it was raised, the source lines around it and the traceback.
"""

import html
import linecache
import traceback
import types
from typing import Any

SNIPPET_CONTEXT = 5

_CSS = """\
body { font-family: ui-monospace, Menlo, Consolas, monospace; background: #1a1b26; color: #c0caf5; padding: 2rem; }
.error-page { max-width: 960px; margin: 0 auto; background: #24283b; padding: 1.5rem; border-radius: 8px; }
h1 { color: #f7768e; font-size: 1.4rem; }
h2 { color: #7aa2f7; font-size: 1.1rem; margin-top: 1.5rem; }
.exc-message { color: #e0af68; font-size: 1.05rem; white-space: pre-wrap; word-break: break-word; }
.file-info { margin: 0.8rem 0; }
.source, .trace { background: #1f2335; padding: 0.8rem; border-radius: 5px; overflow-x: auto; }
.source-line { white-space: pre; }
.source-line .lineno { color: #565f89; display: inline-block; min-width: 3rem; }
.source-line.error-line { color: #f7768e; font-weight: bold; }
.request-line .label { color: #7aa2f7; display: inline-block; min-width: 6rem; }
"""


def _esc(text: object) -> str:
    return html.escape(str(text), quote=True)


def _origin(tb: types.TracebackType | None) -> tuple[str, int, dict[str, Any]] | None:
    """File, line and globals of the innermost frame."""
    if tb is None:
        return None
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame.f_code.co_filename, tb.tb_lineno, tb.tb_frame.f_globals


def source_snippet(
    filename: str,
    lineno: int,
    module_globals: dict[str, Any] | None = None,
    *,
    context: int = SNIPPET_CONTEXT,
) -> list[tuple[int, str]]:
    """``(lineno, text)`` pairs for the lines around *lineno*.

    Empty when the source is unavailable.
    """
    lines: list[tuple[int, str]] = []
    for i in range(max(1, lineno - context), lineno + context + 1):
        line = linecache.getline(filename, i, module_globals)
        if line:
            lines.append((i, line.rstrip("\n")))
    return lines


def _render_snippet(lines: list[tuple[int, str]], error_lineno: int) -> str:
    if not lines:
        return '<pre class="source">Code unavailable.</pre>'
    rows = "".join(
        f'<div class="source-line{" error-line" if n == error_lineno else ""}">'
        f'<span class="lineno">{n}:</span>{_esc(code)}</div>'
        for n, code in lines
    )
    return f'<div class="source">{rows}</div>'


def _render_request(request: Any) -> str:
    method = getattr(request, "method", "?")
    url = getattr(request, "url", getattr(request, "path", "?"))
    parts = [
        f'<div class="request-line"><span class="label">Request</span>{_esc(method)} {_esc(url)}</div>'
    ]
    client = getattr(request, "client", None)
    if client:
        parts.append(
            f'<div class="request-line"><span class="label">Client</span>{_esc(client[0])}:{_esc(client[1])}</div>'
        )
    return "".join(parts)


def render_debug_page(exc: BaseException, request: Any = None) -> str:
    """Full HTML document describing *exc*."""
    exc_type = type(exc).__name__
    message = str(exc)
    sections = [
        "<h1>An error occurred</h1>",
        f'<p class="exc-message">{_esc(exc_type)}: {_esc(message)}</p>',
    ]

    origin = _origin(exc.__traceback__)
    if origin is not None:
        filename, lineno, module_globals = origin
        sections.append(
            f'<p class="file-info">File: <strong>{_esc(filename)}</strong> '
            f"Line: <strong>{lineno}</strong></p>"
        )
        sections.append(_render_snippet(source_snippet(filename, lineno, module_globals), lineno))

    trace = "".join(traceback.format_exception(exc))
    sections.append("<h2>Stack Trace</h2>")
    sections.append(f'<pre class="trace">{_esc(trace)}</pre>')

    if request is not None:
        sections.append("<h2>Request</h2>")
        sections.append(_render_request(request))

    return (
        "<!DOCTYPE html>"
        '<html lang="en"><head>'
        '<meta charset="utf-8">'
        '<meta name="viewport" content="width=device-width, initial-scale=1">'
        f"<title>Application Error: {_esc(exc_type)}</title>"
        f"<style>{_CSS}</style>"
        "</head><body>"
        f'<div class="error-page">{"".join(sections)}</div>'
        "</body></html>"
    )
