"""
Option source specifications.

A field that offers a choice (select, relation, radio) declares where its
values come from:

- ``StaticOptions``: an ordered, fixed list of ``(key, label)`` pairs
- ``ModelQuery``: records of a type read from the record store, optionally
  narrowed by a named scope
- ``RawQuery``: records matching a preconstructed filter mapping

Resolution lives in ``screenkit.runtime.options``; these are plain values.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContextRef(BaseModel):
    """
    Reference to a value in the merged data bag, resolved at resolution time.

    Example:
        Relation.make("city").from_model("City", "name").apply_scope(
            "in_country", ContextRef(path="address.country_id")
        )
    """

    model_config = ConfigDict(frozen=True)

    path: str


def ref(path: str) -> ContextRef:
    """Shorthand for ``ContextRef(path=...)``."""
    return ContextRef(path=path)


class EmptyOption(BaseModel):
    """The "no selection" sentinel placed first in a resolved option list."""

    model_config = ConfigDict(frozen=True)

    label: str = ""
    value: Any = ""


class StaticOptions(BaseModel):
    """
    Fixed options in declaration order.

    Example:
        StaticOptions.build({"draft": "Draft", "live": "Published"})
        StaticOptions.build(["S", "M", "L"])  # key == label
    """

    model_config = ConfigDict(frozen=True)

    options: tuple[tuple[Any, str], ...] = ()

    @classmethod
    def build(cls, source: Mapping[Any, Any] | Iterable[Any]) -> StaticOptions:
        if isinstance(source, Mapping):
            pairs = tuple((key, str(label)) for key, label in source.items())
        else:
            pairs = tuple((item, str(item)) for item in source)
        return cls(options=pairs)


class _RecordQuery(BaseModel):
    """Settings shared by record-store backed sources."""

    model_config = ConfigDict(frozen=True)

    record_type: str = Field(default="", description="Record type name in the store")
    display: str = Field(default="name", description="Column used as the option label")
    key: str = Field(default="id", description="Column used as the option key")
    search_columns: tuple[str, ...] = Field(
        default=(), description="Columns matched during interactive search"
    )
    chunk: int | None = Field(default=None, description="Result limit")
    display_append: str | Callable[[Any], Any] | None = Field(
        default=None, description="Computed label: accessor name or callable per record"
    )
    order_by: str | None = Field(default=None, description="Column, '-column' for descending")


class ModelQuery(_RecordQuery):
    """
    Options read from all records of a type, optionally through a scope.

    Example:
        ModelQuery(record_type="Idea", display="title", scope="active")
    """

    scope: str | None = None
    scope_args: tuple[Any, ...] = ()


class RawQuery(_RecordQuery):
    """
    Options read from records matching a preconstructed filter.

    Filter values may be ``ContextRef`` instances; list values mean "in".

    Example:
        RawQuery(record_type="User", filter={"role": "editor"}, display="email")
    """

    filter: dict[str, Any] = Field(default_factory=dict)


OptionSource = StaticOptions | ModelQuery | RawQuery
