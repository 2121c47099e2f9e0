"""
Screenkit CLI.

Commands:
- layouts: List registered layout verbs
- inspect: Compose a screen and print its render tree
- render: Compose a screen and write its HTML
"""

from __future__ import annotations

import importlib
import json
import sys
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from screenkit._version import __version__
from screenkit.core.errors import ScreenkitError
from screenkit.core.logging import setup_logging
from screenkit.core.settings import ScreenkitSettings, find_settings, load_settings
from screenkit.runtime.composer import Composer
from screenkit.runtime.layout_registry import get_layout_registry
from screenkit.runtime.record_store import InMemoryRecordStore
from screenkit.runtime.render_tree import RenderNode, ScreenRender
from screenkit.runtime.screen import Screen
from screenkit.runtime.template_renderer import TemplateRenderer

app = typer.Typer(
    help="Declarative screens: inspect and render composed layouts.",
    no_args_is_help=True,
)

console = Console()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"screenkit {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to screenkit.toml (default: nearest one above the current directory)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version"
    ),
) -> None:
    try:
        settings = load_settings(config) if config else find_settings()
    except (OSError, ScreenkitError) as e:
        console.print(f"[red]Error loading settings:[/red] {e}")
        raise typer.Exit(code=1)

    log_dir = None
    if settings.root is not None and settings.logging.directory:
        log_dir = settings.root / settings.logging.directory
    setup_logging(log_dir=log_dir, level="DEBUG" if verbose else settings.logging.level)
    ctx.obj = settings


@app.command("layouts")
def layouts_command() -> None:
    """List registered layout verbs."""
    table = Table(title="Layouts")
    table.add_column("Verb", style="cyan")
    table.add_column("Template")
    table.add_column("Description")
    for name, info in sorted(get_layout_registry().items()):
        table.add_row(name, info["template"], info["description"])
    console.print(table)


@app.command("inspect")
def inspect_command(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Screen to compose, as module:ClassName"),
    data: str = typer.Option(None, "--data", "-d", help="Query params as JSON (or a JSON file)"),
    records: str = typer.Option(
        None, "--records", "-r", help="Record store contents as JSON: {type: [records]}"
    ),
    route: str = typer.Option(None, "--route", help="Current route name for tab menus"),
    app_dir: str = typer.Option(".", "--app-dir", help="Directory added to the import path"),
) -> None:
    """Compose a screen and print its render tree.

    Examples:
        screenkit inspect app.screens:UserEdit --data '{"user_id": 3}'
        screenkit inspect app.screens:UserEdit --records fixtures.json
    """
    render = _compose(ctx.obj, target, data, records, route, app_dir)

    tree = Tree(f"[bold]{render.name}[/bold]" + (f" - {render.title}" if render.title else ""))
    for node in render.nodes:
        _add_tree_node(tree, node)
    console.print(tree)

    for message in render.messages:
        console.print(f"[cyan]{message.kind.value}[/cyan] {message.level.value}: {message.text}")


@app.command("render")
def render_command(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Screen to compose, as module:ClassName"),
    data: str = typer.Option(None, "--data", "-d", help="Query params as JSON (or a JSON file)"),
    records: str = typer.Option(
        None, "--records", "-r", help="Record store contents as JSON: {type: [records]}"
    ),
    route: str = typer.Option(None, "--route", help="Current route name for tab menus"),
    output: Path = typer.Option(None, "--output", "-o", help="Write HTML to this file"),
    app_dir: str = typer.Option(".", "--app-dir", help="Directory added to the import path"),
) -> None:
    """Compose a screen and render it to HTML."""
    settings: ScreenkitSettings = ctx.obj
    render = _compose(settings, target, data, records, route, app_dir)
    html = TemplateRenderer(settings.templates_dir).render_screen(render)

    if output is None:
        typer.echo(html)
        return
    output.write_text(html, encoding="utf-8")
    console.print(f"[green]Wrote[/green] {output}")


# =============================================================================
# Helpers
# =============================================================================


def _compose(
    settings: ScreenkitSettings,
    target: str,
    data: str | None,
    records: str | None,
    route: str | None,
    app_dir: str,
) -> ScreenRender:
    screen = _load_screen(target, settings, app_dir)
    params = _read_json(data, "--data") if data else {}
    store = InMemoryRecordStore()
    for record_type, rows in (_read_json(records, "--records") if records else {}).items():
        store.add(record_type, rows)

    composer = Composer(store=store, settings=settings.engine)
    try:
        return screen.compose(composer, params, route=route)
    except ScreenkitError as e:
        console.print(f"[red]Composition failed:[/red] {e}")
        raise typer.Exit(code=1)


def _load_screen(target: str, settings: ScreenkitSettings, app_dir: str) -> Screen:
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        console.print(f"[red]Error:[/red] expected module:ClassName, got '{target}'")
        raise typer.Exit(code=1)

    if app_dir and app_dir not in sys.path:
        sys.path.insert(0, app_dir)
    try:
        module = importlib.import_module(module_name)
        obj = getattr(module, attr)
    except (ImportError, AttributeError) as e:
        console.print(f"[red]Cannot load screen '{target}':[/red] {e}")
        raise typer.Exit(code=1)

    if isinstance(obj, Screen):
        return obj
    if isinstance(obj, type) and issubclass(obj, Screen):
        return obj(settings)
    console.print(f"[red]Error:[/red] '{target}' is not a Screen")
    raise typer.Exit(code=1)


def _read_json(value: str, option: str) -> dict[str, Any]:
    """Parse inline JSON, or the contents of a JSON file when ``value`` is a path."""
    path = Path(value)
    text = path.read_text(encoding="utf-8") if path.suffix == ".json" and path.is_file() else value
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON for {option}:[/red] {e}")
        raise typer.Exit(code=1)
    if not isinstance(parsed, dict):
        console.print(f"[red]Error:[/red] {option} must be a JSON object")
        raise typer.Exit(code=1)
    return parsed


def _node_label(node: RenderNode) -> str:
    label = f"[cyan]{node.kind}[/cyan]"
    if node.name:
        label += f" {node.name}"
    elif node.title:
        label += f" '{node.title}'"
    label += f" [dim]({node.path})[/dim]"
    if node.options is not None:
        label += f" [dim]{len(node.options)} options[/dim]"
    if node.items:
        active = node.active_item
        label += f" [dim]active: {active.label if active else '-'}[/dim]"
    if node.hidden:
        label = f"[dim]{label} hidden[/dim]"
    return label


def _add_tree_node(parent: Tree, node: RenderNode) -> None:
    branch = parent.add(_node_label(node))
    for error in node.errors:
        branch.add(f"[red]{error}[/red]")
    for child in node.children:
        _add_tree_node(branch, child)
    for slot, nodes in node.slots.items():
        slot_branch = branch.add(f"[magenta]slot[/magenta] {slot}")
        for child in nodes:
            _add_tree_node(slot_branch, child)
