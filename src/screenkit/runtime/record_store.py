"""
Record store interface and in-memory implementation.

The composer never talks to an ORM directly: option sources read through
the ``RecordStore`` protocol. ``InMemoryRecordStore`` backs tests, the CLI
and demos.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from screenkit.core.errors import DataSourceError
from screenkit.runtime.binding import read_attribute

logger = logging.getLogger(__name__)

ScopeFn = Callable[..., Iterable[Any]]


@runtime_checkable
class RecordStore(Protocol):
    """Read-only record access used by option sources."""

    def query(
        self,
        record_type: str,
        filter: Mapping[str, Any] | None = None,
        *,
        scope: str | None = None,
        scope_args: Sequence[Any] = (),
        order_by: str | None = None,
        limit: int | None = None,
    ) -> Sequence[Any]: ...

    def search(
        self,
        record_type: str,
        columns: Sequence[str],
        substring: str,
        limit: int,
        *,
        scope: str | None = None,
        scope_args: Sequence[Any] = (),
    ) -> Sequence[Any]: ...


class AttachmentResolver(Protocol):
    """Maps stored attachment identifiers to public URLs."""

    def url(self, identifier: Any) -> str | None: ...


class InMemoryRecordStore:
    """
    Dict-backed record store.

    Example:
        store = InMemoryRecordStore()
        store.add("Idea", [{"id": 1, "title": "Dark mode", "active": True}])
        store.register_scope("Idea", "active", lambda rows: [r for r in rows if r["active"]])
    """

    def __init__(self) -> None:
        self._collections: dict[str, list[Any]] = {}
        self._scopes: dict[tuple[str, str], ScopeFn] = {}

    def add(self, record_type: str, records: Iterable[Any]) -> None:
        self._collections.setdefault(record_type, []).extend(records)

    def register_scope(self, record_type: str, name: str, fn: ScopeFn) -> None:
        """Register ``fn(records, *args) -> records`` as a named scope."""
        self._scopes[(record_type, name)] = fn

    def clear(self) -> None:
        self._collections.clear()
        self._scopes.clear()

    def snapshot(self) -> dict[str, list[Any]]:
        return {name: list(records) for name, records in self._collections.items()}

    # -------------------------------------------------------------------------
    # RecordStore
    # -------------------------------------------------------------------------

    def query(
        self,
        record_type: str,
        filter: Mapping[str, Any] | None = None,
        *,
        scope: str | None = None,
        scope_args: Sequence[Any] = (),
        order_by: str | None = None,
        limit: int | None = None,
    ) -> list[Any]:
        records = self._scoped(record_type, scope, scope_args)
        if filter:
            records = [record for record in records if _matches(record, filter)]
        if order_by:
            descending = order_by.startswith("-")
            column = order_by.lstrip("-")
            present = [record for record in records if read_attribute(record, column) is not None]
            missing = [record for record in records if read_attribute(record, column) is None]
            # None sorts last in both directions
            records = sorted(
                present,
                key=lambda record: read_attribute(record, column),
                reverse=descending,
            ) + missing
        if limit is not None:
            records = records[:limit]
        logger.debug(
            "Queried %s",
            record_type,
            extra={"context": {"scope": scope, "count": len(records), "limit": limit}},
        )
        return records

    def search(
        self,
        record_type: str,
        columns: Sequence[str],
        substring: str,
        limit: int,
        *,
        scope: str | None = None,
        scope_args: Sequence[Any] = (),
    ) -> list[Any]:
        needle = substring.casefold()
        results = [
            record
            for record in self._scoped(record_type, scope, scope_args)
            if any(needle in str(read_attribute(record, column, "")).casefold() for column in columns)
        ]
        return results[:limit]

    def _scoped(self, record_type: str, scope: str | None, scope_args: Sequence[Any]) -> list[Any]:
        if record_type not in self._collections:
            raise DataSourceError(f"Unknown record type '{record_type}'")
        records = list(self._collections[record_type])
        if scope is None:
            return records
        fn = self._scopes.get((record_type, scope))
        if fn is None:
            raise DataSourceError(f"Unknown scope '{scope}' on record type '{record_type}'")
        return list(fn(records, *scope_args))


def _matches(record: Any, filter: Mapping[str, Any]) -> bool:
    for column, expected in filter.items():
        actual = read_attribute(record, column)
        if isinstance(expected, list | tuple | set | frozenset):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True
