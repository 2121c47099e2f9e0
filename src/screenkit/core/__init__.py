"""Core infrastructure: errors, logging and settings."""

from .errors import (
    ConfigurationConflict,
    DataSourceError,
    ErrorContext,
    ScreenkitError,
    SettingsError,
    UnknownLayoutError,
    VisibilityEvaluationError,
)
from .settings import ScreenkitSettings, find_settings, load_settings

__all__ = [
    "ConfigurationConflict",
    "DataSourceError",
    "ErrorContext",
    "ScreenkitError",
    "ScreenkitSettings",
    "SettingsError",
    "UnknownLayoutError",
    "VisibilityEvaluationError",
    "find_settings",
    "load_settings",
]
