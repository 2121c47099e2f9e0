"""Option source resolution.

Turns a field's declared option source into an ordered list of
``OptionItem`` values, either for the initial render (``field_options``)
or for an interactive search request (``search_options``). Both are
read-only against the record store.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from screenkit.core.errors import ConfigurationConflict, DataSourceError
from screenkit.runtime.binding import read_attribute, resolve_refs
from screenkit.runtime.record_store import RecordStore
from screenkit.runtime.render_tree import OptionItem
from screenkit.specs.fields import OPTION_KINDS, Field
from screenkit.specs.options import ModelQuery, OptionSource, RawQuery, StaticOptions

logger = logging.getLogger(__name__)


def select_source(field: Field) -> OptionSource | None:
    """Return the single option source of ``field``.

    Raises:
        ConfigurationConflict: more than one variant is populated, a choice
            field has none, or a record source has no record type.
    """
    sources = field.option_sources
    if len(sources) > 1:
        kinds = ", ".join(type(source).__name__ for source in sources)
        raise ConfigurationConflict(f"Field '{field.name}' declares several option sources ({kinds})")
    if not sources:
        if field.kind in OPTION_KINDS:
            raise ConfigurationConflict(f"Field '{field.name}' has no option source")
        return None
    source = sources[0]
    if isinstance(source, ModelQuery | RawQuery) and not source.record_type:
        detail = f"scope '{source.scope}' " if isinstance(source, ModelQuery) and source.scope else ""
        raise ConfigurationConflict(
            f"Field '{field.name}' configures a {detail}query without a record type"
        )
    return source


def resolve_options(
    source: OptionSource,
    context: Mapping[str, Any],
    store: RecordStore | None = None,
) -> list[OptionItem]:
    """Resolve a source into options, in source order.

    Static sources are returned verbatim; record sources query the store
    limited to ``chunk`` (unbounded when unset).
    """
    if isinstance(source, StaticOptions):
        return [OptionItem(key=key, label=label) for key, label in source.options]
    records = _query(source, context, store, limit=source.chunk)
    return [option_for(source, record) for record in records]


def field_options(
    field: Field,
    source: OptionSource,
    context: Mapping[str, Any],
    store: RecordStore | None = None,
    selected: Sequence[Any] = (),
) -> list[OptionItem]:
    """Options for the initial render of ``field``.

    - selected keys cut off by ``chunk`` are fetched and appended
    - with ``allow_add``, selected values outside the set are echoed back
    - the ``empty`` sentinel always comes first
    """
    options = resolve_options(source, context, store)

    if selected and isinstance(source, ModelQuery | RawQuery) and source.chunk is not None:
        known = {option.key for option in options}
        missing = [value for value in selected if value not in known]
        if missing:
            base_filter = _raw_filter(source, context)
            records = _run(
                store,
                source.record_type,
                lambda s: s.query(
                    source.record_type, {**base_filter, source.key: missing}, order_by=source.order_by
                ),
            )
            options.extend(option_for(source, record) for record in records)

    if field.config.allow_add and selected:
        known = {option.key for option in options}
        for value in selected:
            if value not in (None, "") and value not in known:
                options.append(OptionItem(key=value, label=str(value), added=True))
                known.add(value)

    empty = field.config.empty
    if empty is not None:
        options.insert(0, OptionItem(key=empty.value, label=empty.label))
    return options


def search_options(
    field: Field,
    term: str,
    store: RecordStore | None = None,
    limit: int | None = None,
    context: Mapping[str, Any] | None = None,
    default_limit: int = 10,
) -> list[OptionItem]:
    """Options matching ``term`` for an interactive search request.

    Record sources search ``search_columns`` (or the display column);
    static sources match labels case-insensitively.
    """
    source = select_source(field)
    if source is None:
        return []
    context = context or {}
    needle = term.casefold()

    if isinstance(source, StaticOptions):
        matches = [
            OptionItem(key=key, label=label)
            for key, label in source.options
            if needle in label.casefold()
        ]
        return matches[: limit or default_limit]

    size = limit or source.chunk or default_limit
    columns = source.search_columns or (source.display,)

    if isinstance(source, ModelQuery):
        scope_args = resolve_refs(source.scope_args, context)
        records = _run(
            store,
            source.record_type,
            lambda s: s.search(
                source.record_type,
                columns,
                term,
                size,
                scope=source.scope,
                scope_args=scope_args,
            ),
        )
    else:
        candidates = _query(source, context, store, limit=None)
        records = [
            record
            for record in candidates
            if any(needle in str(read_attribute(record, column, "")).casefold() for column in columns)
        ][:size]

    logger.debug(
        "Searched options for %s",
        field.name,
        extra={"context": {"term": term, "count": len(records)}},
    )
    return [option_for(source, record) for record in records]


def option_for(source: ModelQuery | RawQuery, record: Any) -> OptionItem:
    return OptionItem(key=read_attribute(record, source.key), label=label_for(source, record))


def label_for(source: ModelQuery | RawQuery, record: Any) -> str:
    """Option label: ``display_append`` (callable or accessor name) or the display column."""
    computed = source.display_append
    if computed is None:
        value = read_attribute(record, source.display)
    elif callable(computed):
        value = computed(record)
    else:
        value = read_attribute(record, computed)
        if callable(value):
            value = value()
    return "" if value is None else str(value)


def _raw_filter(source: ModelQuery | RawQuery, context: Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(source, RawQuery):
        return {column: resolve_refs(value, context) for column, value in source.filter.items()}
    return {}


def _query(
    source: ModelQuery | RawQuery,
    context: Mapping[str, Any],
    store: RecordStore | None,
    limit: int | None,
) -> list[Any]:
    if isinstance(source, ModelQuery):
        scope_args = resolve_refs(source.scope_args, context)
        return _run(
            store,
            source.record_type,
            lambda s: s.query(
                source.record_type,
                None,
                scope=source.scope,
                scope_args=scope_args,
                order_by=source.order_by,
                limit=limit,
            ),
        )
    record_filter = _raw_filter(source, context)
    return _run(
        store,
        source.record_type,
        lambda s: s.query(source.record_type, record_filter, order_by=source.order_by, limit=limit),
    )


def _run(store: RecordStore | None, record_type: str, call: Any) -> list[Any]:
    """Invoke a store call, normalising every failure into ``DataSourceError``."""
    if store is None:
        raise DataSourceError(f"No record store configured to load '{record_type}' options")
    try:
        return list(call(store))
    except DataSourceError:
        raise
    except Exception as exc:
        raise DataSourceError(
            f"Record store failed loading '{record_type}': {type(exc).__name__}: {exc}"
        ) from exc
