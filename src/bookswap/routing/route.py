"""Route and RouteMatch frozen dataclasses."""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route. Immutable once created.

    Literal:  ``/login``          (regex is None, no params)
    Dynamic:  ``/books/{id:int}`` (regex set, param_names=("id",),
              param_types={"id": "int"})
    """

    pattern: str
    handler: Callable[..., Any]
    param_names: tuple[str, ...] = ()
    param_types: dict[str, str] = field(default_factory=dict)
    regex: re.Pattern[str] | None = None

    @property
    def is_dynamic(self) -> bool:
        return self.regex is not None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match. ``path_params`` are raw strings."""

    route: Route
    path_params: dict[str, str]
