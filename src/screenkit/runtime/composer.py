"""Composition engine.

Walks declared layouts and fields, merges screen data into every node,
resolves option sources and evaluates predicates, producing a render tree
for the template renderer.

Rules:

    data        A layout's ``query()`` result shadows ancestor keys for its
                subtree only; ancestors are never written to.
    order       Output order is declaration order, hidden nodes included.
    visibility  Hidden nodes stay in the tree (stable paths) but skip
                option resolution. A failing predicate hides the node.
    conflicts   Structural misconfiguration marks the node (``errors``) and
                leaves siblings untouched, unless ``strict`` is set.
    data source Store failures propagate, or go to ``on_data_source_error``
                when the screen installs a fallback.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from screenkit.core.errors import (
    ConfigurationConflict,
    DataSourceError,
    ErrorContext,
    VisibilityEvaluationError,
)
from screenkit.core.settings import EngineSettings
from screenkit.runtime.binding import (
    as_list,
    has_dotted_path,
    html_name,
    merge_bags,
    read_attribute,
    resolve_dotted_path,
)
from screenkit.runtime.options import field_options, search_options, select_source
from screenkit.runtime.record_store import AttachmentResolver, RecordStore
from screenkit.runtime.render_tree import (
    ColumnNode,
    MenuItemNode,
    OptionItem,
    RenderNode,
    template_for,
)
from screenkit.specs.fields import ATTACHMENT_KINDS, Field, FieldKind
from screenkit.specs.layouts import Column, Layout, Legend, Table, Wrapper
from screenkit.specs.menu import RouteRef, TabMenu
from screenkit.specs.options import ModelQuery, OptionSource, RawQuery, StaticOptions
from screenkit.specs.predicates import Predicate

logger = logging.getLogger(__name__)

Node = Field | Layout
DataSourceHandler = Callable[[Field, DataSourceError], Sequence[OptionItem]]

_PANED_KINDS = ("tabs", "accordion")


class _PendingOptions:
    """A visible field waiting for its options."""

    __slots__ = ("node", "field", "source", "selected")

    def __init__(
        self, node: RenderNode, field: Field, source: OptionSource, selected: list[Any]
    ) -> None:
        self.node = node
        self.field = field
        self.source = source
        self.selected = selected


class Composer:
    """
    Composes layout trees into render trees.

    Example:
        composer = Composer(store=store)
        nodes = composer.compose([Rows.make([Input.make("user.name")])], {"user": user})
    """

    def __init__(
        self,
        store: RecordStore | None = None,
        settings: EngineSettings | None = None,
        attachments: AttachmentResolver | None = None,
        on_data_source_error: DataSourceHandler | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or EngineSettings()
        self.attachments = attachments
        self.on_data_source_error = on_data_source_error

    def with_handler(self, handler: DataSourceHandler | None) -> Composer:
        """Copy of this composer with a different data-source fallback."""
        return Composer(
            store=self.store,
            settings=self.settings,
            attachments=self.attachments,
            on_data_source_error=handler,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def compose(
        self,
        layouts: Sequence[Node],
        query_bag: Mapping[str, Any],
        route: RouteRef | str | None = None,
    ) -> list[RenderNode]:
        """Compose a screen's top-level layouts against its query data."""
        bag = merge_bags(query_bag, None)
        current = _as_route(route)
        nodes = self._compose_children(layouts, bag, "", current)
        _check_bindings(nodes)
        return nodes

    def compose_layout(
        self,
        layout: Layout,
        ancestor: Mapping[str, Any],
        route: RouteRef | str | None = None,
    ) -> RenderNode:
        node = self._compose_layout(layout, merge_bags(ancestor, None), "0", _as_route(route))
        _check_bindings([node])
        return node

    def compose_wrapper(
        self,
        wrapper: Wrapper,
        ancestor: Mapping[str, Any],
        route: RouteRef | str | None = None,
    ) -> RenderNode:
        return self.compose_layout(wrapper, ancestor, route)

    def navigations(
        self,
        menu: TabMenu,
        current_route: RouteRef | str | None,
        bag: Mapping[str, Any] | None = None,
    ) -> list[MenuItemNode]:
        """Menu items with their active state; at most one item is active."""
        current = _as_route(current_route)
        context = bag or {}
        items: list[MenuItemNode] = []
        active_found = False
        for index, item in enumerate(menu.navigations()):
            if not self._evaluate(item.visible, context, f"items.{index}", "menu_item", item.label):
                continue
            active = not active_found and item.route.matches(current)
            active_found = active_found or active
            items.append(
                MenuItemNode(
                    label=item.label,
                    route=item.route.name,
                    params=dict(item.route.params),
                    badge=item.badge,
                    icon=item.icon,
                    active=active,
                )
            )
        return items

    def search(
        self,
        field: Field,
        term: str,
        limit: int | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> list[OptionItem]:
        """Interactive option search for a single field (separate request)."""
        return search_options(
            field,
            term,
            self.store,
            limit=limit,
            context=context,
            default_limit=self.settings.search_chunk,
        )

    # =========================================================================
    # Tree walk
    # =========================================================================

    def _compose_children(
        self,
        children: Sequence[Node],
        bag: Mapping[str, Any],
        path: str,
        route: RouteRef | None,
    ) -> list[RenderNode]:
        results: list[RenderNode | None] = [None] * len(children)
        pending: list[_PendingOptions] = []

        for index, child in enumerate(children):
            child_path = f"{path}.{index}" if path else str(index)
            if isinstance(child, Field):
                node, job = self._prepare_field(child, bag, child_path)
                results[index] = node
                if job is not None:
                    pending.append(job)
            else:
                results[index] = self._compose_layout(child, bag, child_path, route)

        self._resolve_pending(pending, bag)
        return [node for node in results if node is not None]

    def _compose_layout(
        self,
        layout: Layout,
        ancestor: Mapping[str, Any],
        path: str,
        route: RouteRef | None,
    ) -> RenderNode:
        template = layout.template if isinstance(layout, Wrapper) else template_for(layout.kind)
        node = RenderNode(
            kind=layout.kind,
            path=path,
            template=template,
            title=layout.title,
            attrs=dict(layout.attrs),
        )
        if not self._evaluate(layout.visible, ancestor, path, layout.kind, layout.title):
            node.hidden = True
            return node

        bag = merge_bags(ancestor, layout.query(ancestor))

        if isinstance(layout, Wrapper):
            node.data = dict(bag)
            self._fill_slots(node, layout, bag, route)
        elif isinstance(layout, TabMenu):
            node.items = self.navigations(layout, route, bag)
        elif isinstance(layout, Table):
            self._fill_table(node, layout, bag)
        elif isinstance(layout, Legend):
            self._fill_legend(node, layout, bag)
        else:
            node.children = self._compose_children(layout.children, bag, path, route)

        if layout.kind in _PANED_KINDS:
            _mark_active_pane(node)
        return node

    # =========================================================================
    # Fields
    # =========================================================================

    def _prepare_field(
        self, field: Field, bag: Mapping[str, Any], path: str
    ) -> tuple[RenderNode, _PendingOptions | None]:
        config = field.config
        node = RenderNode(
            kind=field.kind.value,
            path=path,
            template=template_for(field.kind.value),
            name=field.binding_key,
            html_name=html_name(field.name, field.binds_list),
            title=config.title,
            multiple=field.binds_list,
            allow_add=config.allow_add,
            attrs=_field_attrs(field),
        )

        if not self._evaluate(config.visible, bag, path, node.kind, field.name):
            node.hidden = True
            return node, None
        node.required = self._evaluate(config.required, bag, path, node.kind, field.name)

        try:
            source = select_source(field)
        except ConfigurationConflict as exc:
            self._conflict(node, exc)
            source = None

        key = source.key if isinstance(source, ModelQuery | RawQuery) else None
        if has_dotted_path(field.binding_key, bag):
            value = resolve_dotted_path(field.binding_key, bag)
        else:
            value = config.default
        if field.binds_list:
            value = as_list(value, key)
        node.value = value

        if field.kind == FieldKind.MATRIX:
            _fill_matrix(node, field)
        if field.kind in ATTACHMENT_KINDS:
            self._fill_attachments(node)

        if source is None:
            return node, None
        selected = value if field.binds_list else as_list(value, key)
        return node, _PendingOptions(node, field, source, selected)

    def _resolve_pending(self, pending: list[_PendingOptions], bag: Mapping[str, Any]) -> None:
        remote = [job for job in pending if not isinstance(job.source, StaticOptions)]
        workers = min(self.settings.max_workers, len(remote))
        if workers > 1:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="screenkit-options") as pool:
                futures = [
                    (job, pool.submit(field_options, job.field, job.source, bag, self.store, job.selected))
                    for job in remote
                ]
            outcomes = {id(job): future for job, future in futures}
        else:
            outcomes = {}

        for job in pending:
            future = outcomes.get(id(job))
            try:
                if future is not None:
                    options = future.result()
                else:
                    options = field_options(job.field, job.source, bag, self.store, job.selected)
            except DataSourceError as exc:
                options = self._data_source_fallback(job, exc)
            job.node.options = list(options)

    def _data_source_fallback(self, job: _PendingOptions, exc: DataSourceError) -> Sequence[OptionItem]:
        located = DataSourceError(
            exc.message, ErrorContext(path=job.node.path, node=job.field.name, kind=job.node.kind)
        )
        if self.on_data_source_error is None:
            raise located from exc
        fallback = list(self.on_data_source_error(job.field, located))
        job.node.errors.append(str(located))
        empty = job.field.config.empty
        if empty is not None:
            fallback.insert(0, OptionItem(key=empty.value, label=empty.label))
        return fallback

    def _fill_attachments(self, node: RenderNode) -> None:
        identifiers = as_list(node.value)
        node.attrs["attachments"] = [
            {
                "id": identifier,
                "url": self.attachments.url(identifier) if self.attachments else None,
            }
            for identifier in identifiers
        ]

    # =========================================================================
    # Layout kinds
    # =========================================================================

    def _fill_slots(
        self,
        node: RenderNode,
        wrapper: Wrapper,
        bag: Mapping[str, Any],
        route: RouteRef | None,
    ) -> None:
        for slot, children in wrapper.slots:
            if slot in node.slots:
                self._conflict(
                    node, ConfigurationConflict(f"Slot '{slot}' is declared more than once")
                )
            node.slots[slot] = self._compose_children(children, bag, f"{node.path}.{slot}", route)

    def _fill_table(self, node: RenderNode, table: Table, bag: Mapping[str, Any]) -> None:
        columns = self._visible_columns(table.columns, bag, node.path)
        records = resolve_dotted_path(table.target, bag)
        node.columns = [_column_node(column) for column in columns]
        node.rows = [[_cell(column, record) for column in columns] for record in as_list(records)]
        node.value = records

    def _fill_legend(self, node: RenderNode, legend: Legend, bag: Mapping[str, Any]) -> None:
        columns = self._visible_columns(legend.columns, bag, node.path)
        record = resolve_dotted_path(legend.target, bag)
        node.columns = [_column_node(column) for column in columns]
        node.rows = [
            [_column_node(column).label, _cell(column, record) if record is not None else None]
            for column in columns
        ]
        node.value = record

    def _visible_columns(
        self, columns: Sequence[Column], bag: Mapping[str, Any], path: str
    ) -> list[Column]:
        return [
            column
            for column in columns
            if self._evaluate(column.visible, bag, path, "column", column.name)
        ]

    # =========================================================================
    # Helpers
    # =========================================================================

    def _evaluate(
        self,
        predicate: Predicate,
        bag: Mapping[str, Any],
        path: str,
        kind: str | None,
        name: str | None,
    ) -> bool:
        try:
            return predicate.evaluate(bag)
        except VisibilityEvaluationError as exc:
            logger.warning(
                "Predicate failed, treating as false: %s",
                exc.message,
                extra={"context": {"path": path, "kind": kind, "node": name}},
            )
            return False

    def _conflict(self, node: RenderNode, exc: ConfigurationConflict) -> None:
        located = ConfigurationConflict(
            exc.message, ErrorContext(path=node.path, node=node.name or node.title, kind=node.kind)
        )
        if self.settings.strict:
            raise located from exc
        logger.warning(
            "Configuration conflict: %s",
            exc.message,
            extra={"context": {"path": node.path, "kind": node.kind}},
        )
        node.errors.append(str(located))


# =============================================================================
# Module helpers
# =============================================================================


def _as_route(route: RouteRef | str | None) -> RouteRef | None:
    if route is None or isinstance(route, RouteRef):
        return route
    return RouteRef(name=route)


def _field_attrs(field: Field) -> dict[str, Any]:
    config = field.config
    attrs: dict[str, Any] = {
        "help": config.help,
        "popover": config.popover,
        "placeholder": config.placeholder,
        "orientation": config.orientation.value,
    }
    attrs.update({key: value for key, value in config.extra.items() if key != "cells"})
    return attrs


def _fill_matrix(node: RenderNode, field: Field) -> None:
    rows = node.value or []
    pairs = field.config.extra.get("columns")
    if not pairs:
        first = rows[0] if rows else {}
        keys = list(first.keys()) if isinstance(first, Mapping) else []
        pairs = [(key, key) for key in keys]
    cells: Mapping[str, Field] = field.config.extra.get("cells", {})
    node.columns = [
        ColumnNode(
            key=key,
            label=label,
            kind=cells[key].kind.value if key in cells else FieldKind.INPUT.value,
        )
        for label, key in pairs
    ]
    node.rows = [[read_attribute(row, key) for _, key in pairs] for row in rows]


def _column_node(column: Column) -> ColumnNode:
    return ColumnNode(
        key=column.name,
        label=column.title or column.name.replace("_", " ").replace(".", " ").title(),
        align=column.align,
        width=column.width,
        sortable=column.sortable,
    )


def _cell(column: Column, record: Any) -> Any:
    if column.render_fn is not None:
        return column.render_fn(record)
    return resolve_dotted_path(column.name, record)


def _mark_active_pane(node: RenderNode) -> None:
    panes = node.visible_children()
    if not panes:
        return
    wanted = node.attrs.get("active_tab")
    active = next((pane for pane in panes if pane.title == wanted), panes[0])
    for pane in node.children:
        pane.attrs["active"] = pane is active


def _check_bindings(nodes: Sequence[RenderNode]) -> None:
    """Log duplicate field names; the last declaration owns the binding."""
    owners: dict[str, str] = {}
    for root in nodes:
        for node in root.field_nodes():
            if node.name is None:
                continue
            previous = owners.get(node.name)
            if previous is not None:
                logger.warning(
                    "Field name '%s' declared at %s and %s; the later one owns the binding",
                    node.name,
                    previous,
                    node.path,
                    extra={"context": {"name": node.name}},
                )
            owners[node.name] = node.path
