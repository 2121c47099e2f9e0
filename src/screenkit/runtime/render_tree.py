"""
Render tree models.

The composer's output: a tree mirroring the declared layouts, with data
bound, option sources resolved and predicates evaluated. Templates read
these models directly. Built per request and discarded after rendering.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, Field

from screenkit.specs.feedback import Message

# =============================================================================
# Kind -> Template Mapping
# =============================================================================

FIELD_TEMPLATE_MAP: dict[str, str] = {
    "input": "fields/input.html",
    "password": "fields/input.html",
    "datetime": "fields/input.html",
    "textarea": "fields/textarea.html",
    "quill": "fields/textarea.html",
    "code": "fields/textarea.html",
    "select": "fields/select.html",
    "relation": "fields/select.html",
    "radio": "fields/radio.html",
    "checkbox": "fields/checkbox.html",
    "switcher": "fields/checkbox.html",
    "upload": "fields/upload.html",
    "picture": "fields/upload.html",
    "cropper": "fields/upload.html",
    "matrix": "fields/matrix.html",
    "label": "fields/label.html",
}

LAYOUT_TEMPLATE_MAP: dict[str, str] = {
    "rows": "layouts/rows.html",
    "columns": "layouts/columns.html",
    "group": "layouts/group.html",
    "block": "layouts/block.html",
    "pane": "layouts/rows.html",
    "tabs": "layouts/tabs.html",
    "accordion": "layouts/accordion.html",
    "modal": "layouts/modal.html",
    "table": "layouts/table.html",
    "legend": "layouts/legend.html",
    "tab_menu": "layouts/tab_menu.html",
}


def template_for(kind: str) -> str:
    """Default template for a node kind (layouts fall back to rows)."""
    return FIELD_TEMPLATE_MAP.get(kind) or LAYOUT_TEMPLATE_MAP.get(kind, "layouts/rows.html")


# =============================================================================
# Nodes
# =============================================================================


class OptionItem(BaseModel):
    """One resolved option."""

    key: Any
    label: str
    added: bool = False  # Echoed client value outside the resolved set (allow_add)


class MenuItemNode(BaseModel):
    """Navigation item with its active state evaluated."""

    label: str
    route: str
    params: dict[str, Any] = Field(default_factory=dict)
    badge: str | None = None
    icon: str | None = None
    active: bool = False


class ColumnNode(BaseModel):
    """Table/legend/matrix column header."""

    key: str
    label: str
    align: str = "left"
    width: str | None = None
    sortable: bool = False
    kind: str | None = None  # Matrix cell editor kind


class RenderNode(BaseModel):
    """A composed layout or field."""

    kind: str
    path: str  # Stable index path, e.g. "0.2.1"
    template: str
    name: str | None = None  # Field binding path
    html_name: str | None = None  # Form submission name
    title: str | None = None
    hidden: bool = False
    required: bool = False
    value: Any = None
    options: list[OptionItem] | None = None
    allow_add: bool = False
    multiple: bool = False
    attrs: dict[str, Any] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)  # ConfigurationConflict / data source markers
    children: list[RenderNode] = Field(default_factory=list)
    slots: dict[str, list[RenderNode]] = Field(default_factory=dict)
    items: list[MenuItemNode] = Field(default_factory=list)
    columns: list[ColumnNode] = Field(default_factory=list)
    rows: list[list[Any]] = Field(default_factory=list)
    data: dict[str, Any] = Field(default_factory=dict)  # Merged data bag, wrappers only

    @property
    def is_field(self) -> bool:
        return self.kind in FIELD_TEMPLATE_MAP

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def active_item(self) -> MenuItemNode | None:
        for item in self.items:
            if item.active:
                return item
        return None

    def visible_children(self) -> list[RenderNode]:
        return [child for child in self.children if not child.hidden]

    def walk(self) -> Iterator[RenderNode]:
        """Depth-first over this node, its children and slot contents."""
        yield self
        for child in self.children:
            yield from child.walk()
        for nodes in self.slots.values():
            for node in nodes:
                yield from node.walk()

    def field_nodes(self) -> list[RenderNode]:
        return [node for node in self.walk() if node.is_field]

    def find(self, name: str) -> RenderNode | None:
        """Last field bound to ``name`` (the one that owns the binding)."""
        found = None
        for node in self.field_nodes():
            if node.name == name:
                found = node
        return found


def visible_projection(nodes: list[RenderNode]) -> list[RenderNode]:
    """Copy of ``nodes`` with hidden nodes removed at every depth."""
    projected: list[RenderNode] = []
    for node in nodes:
        if node.hidden:
            continue
        projected.append(
            node.model_copy(
                update={
                    "children": visible_projection(node.children),
                    "slots": {
                        slot: visible_projection(slot_nodes)
                        for slot, slot_nodes in node.slots.items()
                    },
                }
            )
        )
    return projected


class ScreenRender(BaseModel):
    """Everything a page template needs for one screen."""

    name: str
    title: str | None = None
    description: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    nodes: list[RenderNode] = Field(default_factory=list)
    messages: list[Message] = Field(default_factory=list)
