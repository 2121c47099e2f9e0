"""Data bag helpers.

Dotted-path resolution against mappings or record objects, read-only bag
merging, and the field-name conventions used for form submission.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from screenkit.specs.options import ContextRef

_MISSING = object()


def read_attribute(record: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from a mapping or an object attribute."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)


def resolve_dotted_path(path: str, data: Any, default: Any = None) -> Any:
    """Resolve a dotted path like ``user.address.city`` against a data bag.

    Each segment may step through a mapping key or an object attribute.

    Returns:
        The resolved value, or ``default`` if any segment is missing.
    """
    current: Any = data
    for part in path.split("."):
        if not part:
            continue
        current = read_attribute(current, part, _MISSING)
        if current is _MISSING:
            return default
    return current


def has_dotted_path(path: str, data: Any) -> bool:
    return resolve_dotted_path(path, data, _MISSING) is not _MISSING


def merge_bags(ancestor: Mapping[str, Any], local: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Merge a layout's local data over its ancestor's, returning a read-only view.

    The ancestor mapping is never modified; local keys shadow ancestor keys.
    """
    if not local:
        if isinstance(ancestor, MappingProxyType):
            return ancestor
        return MappingProxyType(dict(ancestor))
    return MappingProxyType({**ancestor, **local})


def resolve_refs(value: Any, context: Mapping[str, Any]) -> Any:
    """Replace ``ContextRef`` instances (also inside lists/tuples) with bag values."""
    if isinstance(value, ContextRef):
        return resolve_dotted_path(value.path, context)
    if isinstance(value, list | tuple):
        return type(value)(resolve_refs(item, context) for item in value)
    return value


def html_name(name: str, multiple: bool = False) -> str:
    """Form field name for a binding path.

    ``user.name`` -> ``user[name]``, ``ideas.`` -> ``ideas[]``.
    """
    is_list = name.endswith(".") or multiple
    parts = [part for part in name.split(".") if part]
    result = parts[0] + "".join(f"[{part}]" for part in parts[1:])
    if is_list:
        result += "[]"
    return result


def as_list(value: Any, key: str | None = None) -> list[Any]:
    """Coerce a bound value into a list for array-bound fields.

    ``None`` becomes ``[]``, scalars become ``[scalar]``; when ``key`` is
    given, records (mappings or objects) are reduced to their key column.
    """
    if value is None:
        return []
    if isinstance(value, str | bytes | Mapping) or not isinstance(value, Iterable):
        items: Iterable[Any] = [value]
    else:
        items = value
    return [_key_of(item, key) for item in items]


def _key_of(item: Any, key: str | None) -> Any:
    if key is None:
        return item
    if isinstance(item, Mapping):
        return item.get(key, item)
    if isinstance(item, str | int | float | bool):
        return item
    return getattr(item, key, item)
