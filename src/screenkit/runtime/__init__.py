"""Composition runtime: binding, option resolution, render trees and rendering."""

from screenkit.runtime.composer import Composer
from screenkit.runtime.layout_registry import (
    LAYOUT_REGISTRY,
    get_layout_info,
    get_layout_registry,
    make_layout,
    register_layout,
)
from screenkit.runtime.record_store import AttachmentResolver, InMemoryRecordStore, RecordStore
from screenkit.runtime.render_tree import (
    ColumnNode,
    MenuItemNode,
    OptionItem,
    RenderNode,
    ScreenRender,
    visible_projection,
)
from screenkit.runtime.screen import Screen
from screenkit.runtime.template_renderer import TemplateRenderer, create_jinja_env

__all__ = [
    "AttachmentResolver",
    "ColumnNode",
    "Composer",
    "InMemoryRecordStore",
    "LAYOUT_REGISTRY",
    "MenuItemNode",
    "OptionItem",
    "RecordStore",
    "RenderNode",
    "Screen",
    "ScreenRender",
    "TemplateRenderer",
    "create_jinja_env",
    "get_layout_info",
    "get_layout_registry",
    "make_layout",
    "register_layout",
    "visible_projection",
]
