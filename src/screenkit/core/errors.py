"""
Error types for screen composition, option resolution and settings.
"""

from dataclasses import dataclass
from typing import Optional


class ScreenkitError(Exception):
    """Base exception for all Screenkit errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}: {self.message}"
        return self.message


class ConfigurationConflict(ScreenkitError):
    """
    Raised when a declarative node is structurally misconfigured.

    Examples:
    - A field declaring both static options and a model query
    - A select/relation field without any option source
    - A scope applied to a field that has no model source
    - A wrapper declaring the same slot twice
    - A layout verb registered twice
    """

    pass


class DataSourceError(ScreenkitError):
    """
    Raised when option resolution cannot read from the record store.

    Examples:
    - Record store unreachable or timing out
    - Unknown record type
    - Unknown scope name
    """

    pass


class VisibilityEvaluationError(ScreenkitError):
    """
    Raised when a computed predicate fails during evaluation.

    The composer downgrades this to a hidden node and a warning.
    """

    pass


class UnknownLayoutError(ScreenkitError, LookupError):
    """Raised when a layout verb is not present in the registry."""

    pass


class SettingsError(ScreenkitError):
    """Raised when ``screenkit.toml`` contains invalid values."""

    pass


@dataclass
class ErrorContext:
    """
    Location of an error inside a composed tree.

    Attributes:
        path: Dotted index path of the node (e.g. ``"0.2.1"``)
        node: Optional node name (field name or layout title)
        kind: Optional node kind (``select``, ``rows``...)
    """

    path: str
    node: str | None = None
    kind: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "select 'country' at 0.2.1"
        """
        parts = []
        if self.kind:
            parts.append(self.kind)
        if self.node:
            parts.append(f"'{self.node}'")
        parts.append(f"at {self.path or 'root'}")
        return " ".join(parts)
