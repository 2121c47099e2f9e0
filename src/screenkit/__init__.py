"""
Screenkit - declarative screens with data binding.

Describe forms and admin screens as immutable trees of fields and layouts;
the composer binds screen data, resolves option sources and evaluates
visibility, and the template renderer turns the result into HTML.
"""

from __future__ import annotations

from ._version import __version__
from .core.errors import (
    ConfigurationConflict,
    DataSourceError,
    ScreenkitError,
    VisibilityEvaluationError,
)
from .runtime import Composer, InMemoryRecordStore, Screen, TemplateRenderer

__all__ = [
    "__version__",
    "Composer",
    "ConfigurationConflict",
    "DataSourceError",
    "InMemoryRecordStore",
    "Screen",
    "ScreenkitError",
    "TemplateRenderer",
    "VisibilityEvaluationError",
]
