"""Row-to-entity hydration with type coercion.

Converts row mappings into frozen dataclass entities using dataclass
field introspection. Fields annotated ``int``/``float``/``bool``/``str``
(or ``X | None``) coerce driver values: SQLite hands back ``0``/``1``
for booleans and may return numeric text for untyped columns.
"""

import dataclasses
import types
from collections.abc import Iterable, Mapping
from typing import Any, get_args, get_origin

_COERCIBLE: dict[type, Any] = {
    int: lambda v: int(v) if v != "" else 0,
    float: lambda v: float(v) if v != "" else 0.0,
    bool: lambda v: bool(int(v)) if isinstance(v, str) else bool(v),
    str: str,
}


def _coercion_map(cls: type) -> dict[str, type | None]:
    """``{field_name: target_type}``; ``None`` where no coercion applies."""
    result: dict[str, type | None] = {}
    for f in dataclasses.fields(cls):
        annotation = f.type
        if get_origin(annotation) is types.UnionType:
            args = [a for a in get_args(annotation) if a is not type(None)]
            annotation = args[0] if len(args) == 1 else None
        result[f.name] = annotation if annotation in _COERCIBLE else None
    return result


def _coerce(value: Any, target: type | None) -> Any:
    if target is None or value is None or isinstance(value, target):
        return value
    return _COERCIBLE[target](value)


def _require_dataclass(cls: type) -> None:
    if not dataclasses.is_dataclass(cls):
        msg = f"{cls.__name__} is not a dataclass; entities must be dataclasses"
        raise TypeError(msg)


def map_row[T](cls: type[T], row: Mapping[str, Any]) -> T:
    """Hydrate one entity from a row mapping.

    Columns without a matching field are ignored, so ``SELECT *`` works
    against an entity that declares fewer fields.

    Raises ``TypeError`` if a required field is missing from the row.
    """
    _require_dataclass(cls)
    coercion = _coercion_map(cls)
    return cls(**{k: _coerce(v, coercion[k]) for k, v in row.items() if k in coercion})


def map_rows[T](cls: type[T], rows: Iterable[Mapping[str, Any]]) -> list[T]:
    """Hydrate a list of entities."""
    _require_dataclass(cls)
    coercion = _coercion_map(cls)
    return [
        cls(**{k: _coerce(v, coercion[k]) for k, v in row.items() if k in coercion})
        for row in rows
    ]
