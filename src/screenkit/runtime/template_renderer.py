"""
Jinja2 template renderer for composed screens.

Sets up the Jinja2 environment with custom filters and template loading
from the package templates/ directory, and renders render trees node by
node: each template receives its ``node`` plus a ``render`` callable for
children.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, PrefixLoader, select_autoescape
from markupsafe import Markup

from screenkit._version import __version__
from screenkit.runtime.binding import as_list
from screenkit.runtime.render_tree import RenderNode, ScreenRender

# Template directory
TEMPLATES_DIR = Path(__file__).parent.parent / "templates"


def _date_filter(value: Any, fmt: str = "%d %b %Y") -> str:
    """Format a date or datetime."""
    if value is None:
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return str(value)
    if isinstance(value, (date, datetime)):
        return value.strftime(fmt)
    return str(value)


def _bool_icon_filter(value: Any) -> Markup:
    """Render a boolean as a check or cross icon."""
    if value:
        return Markup('<span class="text-success">&#10003;</span>')
    return Markup('<span class="text-base-content/30">&#10005;</span>')


def _slugify_filter(value: Any) -> str:
    """Slugify a string for use as an HTML id attribute."""
    if value is None:
        return ""
    text = str(value).lower().strip()
    text = re.sub(r"[^a-z0-9]+", "-", text)
    return text.strip("-")


def _field_id_filter(path: Any) -> str:
    """DOM id for a node path: ``0.2.1`` -> ``sk-0-2-1``."""
    return "sk-" + str(path).replace(".", "-")


def _selected_keys_filter(value: Any) -> set[str]:
    """Bound value(s) as a set of strings, for option ``selected`` checks."""
    return {str(item) for item in as_list(value) if item is not None}


def _cell_filter(value: Any) -> Any:
    """Display form of a table/legend cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return _bool_icon_filter(value)
    if isinstance(value, (date, datetime)):
        return _date_filter(value)
    if isinstance(value, Mapping):
        return value.get("name") or value.get("title") or value.get("label") or value.get("id", "")
    return value


def create_jinja_env(project_templates_dir: Path | None = None) -> Environment:
    """Create and configure the Jinja2 environment.

    Args:
        project_templates_dir: Optional path to project-level templates.
            When provided, project templates take priority over built-in
            templates. Built-ins remain accessible via the ``sk://`` prefix
            (e.g. ``{% extends "sk://layouts/block.html" %}``).
    """
    framework_loader = FileSystemLoader(str(TEMPLATES_DIR))

    if project_templates_dir and project_templates_dir.is_dir():
        project_loader = FileSystemLoader(str(project_templates_dir))
        # Project templates searched first, built-ins as fallback
        main_loader = ChoiceLoader([project_loader, framework_loader])
    else:
        main_loader = ChoiceLoader([framework_loader])

    loader = PrefixLoader({"sk": framework_loader}, delimiter="://")
    combined = ChoiceLoader([loader, main_loader])

    env = Environment(
        loader=combined,
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )

    env.globals["_screenkit_version"] = __version__

    env.filters["dateformat"] = _date_filter
    env.filters["bool_icon"] = _bool_icon_filter
    env.filters["slugify"] = _slugify_filter
    env.filters["field_id"] = _field_id_filter
    env.filters["selected_keys"] = _selected_keys_filter
    env.filters["cell"] = _cell_filter

    return env


class SlotBag(dict):
    """Rendered wrapper slots; an undeclared slot renders as nothing."""

    def __missing__(self, key: str) -> Markup:
        return Markup("")


class TemplateRenderer:
    """
    Renders render trees to HTML.

    Example:
        renderer = TemplateRenderer(settings.templates_dir)
        html = renderer.render_screen(screen.compose(composer, params))
    """

    def __init__(
        self,
        project_templates_dir: Path | None = None,
        env: Environment | None = None,
    ) -> None:
        self.env = env or create_jinja_env(project_templates_dir)

    def render(self, template_ref: str, bindings: Mapping[str, Any]) -> str:
        """Render a template by reference (``fields/input.html``, ``sk://...``)."""
        template = self.env.get_template(template_ref)
        return template.render(**bindings)

    def render_node(self, node: RenderNode) -> Markup:
        if node.hidden:
            return Markup("")
        slots = SlotBag(
            (slot, self.render_nodes(nodes)) for slot, nodes in node.slots.items()
        )
        html = self.render(
            node.template,
            {**node.data, "node": node, "slots": slots, "render": self.render_node},
        )
        return Markup(html)

    def render_nodes(self, nodes: Iterable[RenderNode]) -> Markup:
        return Markup("\n").join(self.render_node(node) for node in nodes)

    def render_screen(self, screen: ScreenRender, template_ref: str = "screen.html") -> str:
        """Render a whole screen: messages first, then its top-level nodes."""
        return self.render(
            template_ref,
            {
                "screen": screen,
                "content": self.render_nodes(screen.nodes),
                "messages": screen.messages,
                "render": self.render_node,
            },
        )
