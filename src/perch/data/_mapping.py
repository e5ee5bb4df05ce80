"""Row-to-dataclass mapping with type coercion.

SQLite is loosely typed: an ``INTEGER`` column may hand back ``"7"``
and a boolean flag comes back as ``0``/``1``. Rows are mapped onto
frozen dataclasses by field name, converting scalars to the annotated
type. Columns without a matching field are dropped.
"""

import dataclasses
import functools
import types
from collections.abc import Callable, Iterable, Mapping
from typing import Any, get_args, get_origin

_CONVERTERS: dict[Any, Callable[[Any], Any]] = {
    int: lambda v: int(v) if v != "" else 0,
    float: lambda v: float(v) if v != "" else 0.0,
    bool: lambda v: bool(int(v)) if isinstance(v, str) else bool(v),
    str: str,
}


def _scalar_type(annotation: Any) -> Any:
    """``int | None`` -> ``int``; anything not a plain scalar -> ``None``."""
    if get_origin(annotation) is types.UnionType:
        members = [a for a in get_args(annotation) if a is not type(None)]
        annotation = members[0] if len(members) == 1 else None
    return annotation if annotation in _CONVERTERS else None


@functools.cache
def _field_types(cls: type) -> dict[str, Any]:
    if not dataclasses.is_dataclass(cls):
        msg = f"{cls.__name__} is not a dataclass; rows map onto dataclasses only"
        raise TypeError(msg)
    return {f.name: _scalar_type(f.type) for f in dataclasses.fields(cls)}


def _convert(value: Any, target: Any) -> Any:
    if target is None or value is None or isinstance(value, target):
        return value
    return _CONVERTERS[target](value)


def map_row[T](cls: type[T], row: Mapping[str, Any]) -> T:
    """Build a ``cls`` instance from *row*.

    Raises ``TypeError`` when *cls* is not a dataclass or a required
    field has no column.
    """
    types_by_name = _field_types(cls)
    return cls(
        **{
            name: _convert(value, types_by_name[name])
            for name, value in row.items()
            if name in types_by_name
        }
    )


def map_rows[T](cls: type[T], rows: Iterable[Mapping[str, Any]]) -> list[T]:
    """Map every row in *rows* onto ``cls``."""
    return [map_row(cls, row) for row in rows]
