"""Path helpers for nested form values.

A field path is a tuple of property keys and array indices, e.g.
``("connectionConfiguration", "hosts", 0, "port")``. Array item templates use
the :data:`ITEMS` marker in place of an index.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, Mapping, Sequence, Tuple, Union

__all__ = [
    "ITEMS",
    "FieldPath",
    "as_path",
    "path_key",
    "get_in",
    "has_value",
    "set_in",
    "deep_merge",
]

ITEMS = "[]"

PathSegment = Union[str, int]
FieldPath = Tuple[PathSegment, ...]

_MISSING = object()


def as_path(path: Union[str, Iterable[PathSegment]]) -> FieldPath:
    """Normalize a dotted string or a sequence into a field path.

    Numeric segments of a dotted string are read as array indices.

    Example:
        >>> as_path("connectionConfiguration.hosts.0.port")
        ('connectionConfiguration', 'hosts', 0, 'port')
    """
    if isinstance(path, str):
        if not path:
            return ()
        return tuple(int(p) if p.isdigit() else p for p in path.split("."))
    return tuple(path)


def path_key(path: Sequence[PathSegment]) -> str:
    """Render a field path as a dotted key."""
    return ".".join(str(p) for p in path)


def get_in(values: Any, path: Sequence[PathSegment], default: Any = None) -> Any:
    """Read the value at ``path``, returning ``default`` when it is absent."""
    current = values
    for segment in path:
        if isinstance(current, Mapping):
            if segment not in current:
                return default
            current = current[segment]
        elif isinstance(current, list) and isinstance(segment, int):
            if not -len(current) <= segment < len(current):
                return default
            current = current[segment]
        else:
            return default
    return current


def has_value(values: Any, path: Sequence[PathSegment]) -> bool:
    """Check whether a defined (non-``None``) value exists at ``path``."""
    return get_in(values, path, _MISSING) not in (_MISSING, None)


def set_in(values: Dict[str, Any], path: Sequence[PathSegment], value: Any) -> bool:
    """Write ``value`` at ``path`` in place, creating missing parent mappings.

    Returns:
        False when an existing parent is not a container that can hold the
        path, in which case nothing is written.
    """
    if not path:
        return False

    current: Any = values
    for index, segment in enumerate(path[:-1]):
        if isinstance(current, dict):
            child = current.get(segment)
            if child is None:
                child = {}
                current[segment] = child
            current = child
        elif isinstance(current, list) and isinstance(segment, int):
            if not 0 <= segment < len(current):
                return False
            current = current[segment]
        else:
            return False

    last = path[-1]
    if isinstance(current, dict):
        current[last] = value
        return True
    if isinstance(current, list) and isinstance(last, int) and 0 <= last < len(current):
        current[last] = value
        return True
    return False


def deep_merge(
    base: Mapping[str, Any],
    override: Mapping[str, Any],
) -> Dict[str, Any]:
    """Deep merge two mappings, with override taking precedence.

    Neither input is modified; nested mappings in the result are copies.

    Args:
        base: Lower-precedence values
        override: Higher-precedence values

    Returns:
        New dictionary with merged values
    """
    result = copy.deepcopy(dict(base))

    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, Mapping)
        ):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)

    return result
