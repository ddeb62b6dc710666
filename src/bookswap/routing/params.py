"""Path parameter types and conversion.

Types are declared at registration time, either inline (``{id:int}``)
or through the ``params`` argument of ``Router.add_route``. Handlers
are never introspected.
"""

import re
from collections.abc import Mapping

from bookswap.errors import ConfigurationError

# (accepted text, python_type) for each supported converter
CONVERTERS: dict[str, tuple[str, type]] = {
    "str": (r"[^/]+", str),
    "int": (r"-?[0-9]+", int),
}

# SQLite INTEGER is a signed 64-bit value.
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1

_PATTERNS: dict[str, re.Pattern[str]] = {
    name: re.compile(pattern) for name, (pattern, _) in CONVERTERS.items()
}
_TYPE_NAMES: dict[type, str] = {target: name for name, (_, target) in CONVERTERS.items()}


def normalize_type(declared: str | type) -> str:
    """Return the converter name for a declared parameter type.

    Accepts a converter name (``"int"``) or the Python type itself (``int``).
    Raises ``ConfigurationError`` for anything else.
    """
    if isinstance(declared, str):
        if declared in CONVERTERS:
            return declared
    elif declared in _TYPE_NAMES:
        return _TYPE_NAMES[declared]
    known = ", ".join(sorted(CONVERTERS))
    msg = f"Unknown path parameter type {declared!r}. Supported: {known}"
    raise ConfigurationError(msg)


def convert_param(value: str, param_type: str) -> str | int:
    """Convert a captured path parameter string to its declared type.

    Integers are plain ASCII digits with an optional leading minus and
    must fit a signed 64-bit column; ``4_2``, ``+42`` or `` 42`` are
    rejected rather than aliased to ``42``.

    Raises ``ValueError`` if the string cannot be converted.
    """
    if not _PATTERNS[param_type].fullmatch(value):
        msg = f"{value!r} is not a valid {param_type} path parameter"
        raise ValueError(msg)
    _, target_type = CONVERTERS[param_type]
    converted = target_type(value)
    if target_type is int and not INT_MIN <= converted <= INT_MAX:
        msg = f"{value!r} is out of range for an int path parameter"
        raise ValueError(msg)
    return converted


def convert_params(
    raw: Mapping[str, str],
    types: Mapping[str, str],
) -> dict[str, str | int]:
    """Convert every captured value; undeclared names stay strings."""
    return {name: convert_param(value, types.get(name, "str")) for name, value in raw.items()}
