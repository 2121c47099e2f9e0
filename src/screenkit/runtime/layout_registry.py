"""Layout registry.

Maps layout verbs (``rows``, ``tabs``, ``wrapper``...) to their factories
so that screens, tooling and the CLI can build and discover layouts by
name. Built-in verbs are registered at import time; projects add their own
with ``register_layout``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from screenkit.core.errors import ConfigurationConflict, UnknownLayoutError
from screenkit.runtime.render_tree import template_for
from screenkit.specs.layouts import (
    Accordion,
    Block,
    Columns,
    Group,
    Layout,
    Legend,
    Modal,
    Rows,
    Table,
    Tabs,
    Wrapper,
)
from screenkit.specs.menu import TabMenu

LayoutFactory = Callable[..., Layout]

LAYOUT_REGISTRY: dict[str, dict[str, Any]] = {}


def register_layout(
    name: str,
    *,
    template: str | None = None,
    description: str = "",
    replace: bool = False,
) -> Callable[[LayoutFactory], LayoutFactory]:
    """Register a layout factory under ``name``.

    Example:
        @register_layout("split", template="layouts/split.html")
        def split(left, right):
            return Wrapper.make("layouts/split.html", {"left": left, "right": right})

    Raises:
        ConfigurationConflict: ``name`` is already registered and ``replace`` is False.
    """

    def decorator(factory: LayoutFactory) -> LayoutFactory:
        if name in LAYOUT_REGISTRY and not replace:
            raise ConfigurationConflict(f"Layout '{name}' is already registered")
        LAYOUT_REGISTRY[name] = {
            "factory": factory,
            "template": template or template_for(name),
            "description": description or _first_line(factory.__doc__),
        }
        return factory

    return decorator


def make_layout(name: str, *args: Any, **kwargs: Any) -> Layout:
    """Build a layout by verb name."""
    info = LAYOUT_REGISTRY.get(name)
    if info is None:
        known = ", ".join(sorted(LAYOUT_REGISTRY))
        raise UnknownLayoutError(f"Unknown layout '{name}'. Registered layouts: {known}")
    return info["factory"](*args, **kwargs)


def get_layout_registry() -> dict[str, dict[str, Any]]:
    """Return the full layout registry."""
    return LAYOUT_REGISTRY


def get_layout_info(name: str) -> dict[str, Any] | None:
    """Return info for a single layout verb, or None if not found."""
    return LAYOUT_REGISTRY.get(name)


def _first_line(doc: str | None) -> str:
    if not doc:
        return ""
    return doc.strip().splitlines()[0]


# =============================================================================
# Built-in verbs
# =============================================================================

_BUILTINS: dict[str, tuple[LayoutFactory, str]] = {
    "rows": (Rows.make, "Fields stacked vertically."),
    "columns": (Columns.make, "Children side by side."),
    "group": (Group.make, "Inline group of fields sharing one row."),
    "block": (Block.make, "Titled card with optional description."),
    "tabs": (Tabs.make, "Titled panes, one visible at a time."),
    "accordion": (Accordion.make, "Collapsible titled panes."),
    "modal": (Modal.make, "Dialog opened by key."),
    "wrapper": (Wrapper.make, "Named slots rendered inside a custom template."),
    "table": (Table.make, "Read-only table over a bound collection."),
    "legend": (Legend.make, "Label/value rows for a single record."),
    "tab_menu": (TabMenu.make, "Navigation between related screens."),
}

for _name, (_factory, _description) in _BUILTINS.items():
    register_layout(_name, description=_description)(_factory)
