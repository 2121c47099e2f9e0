"""
Project settings loaded from ``screenkit.toml``.

Example::

    [engine]
    search_chunk = 10
    max_workers = 4
    strict = false
    data_source_errors = "empty"

    [templates]
    directory = "templates"

    [logging]
    level = "DEBUG"
    directory = ".screenkit/logs"

    [feedback]
    toast_delay = 3000
    toast_auto_hide = true
"""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from screenkit.core.errors import SettingsError

SETTINGS_FILENAME = "screenkit.toml"

DATA_SOURCE_POLICIES = ("raise", "empty")


@dataclass
class EngineSettings:
    """Composition engine configuration."""

    search_chunk: int = 10  # Default limit for interactive option search
    max_workers: int = 1  # >1 resolves sibling record-store options concurrently
    strict: bool = False  # Raise ConfigurationConflict instead of marking the node
    data_source_errors: str = "raise"  # "raise" | "empty"


@dataclass
class TemplateSettings:
    """Template override configuration."""

    directory: str | None = None  # Project templates, relative to the settings file


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    directory: str | None = ".screenkit/logs"


@dataclass
class FeedbackSettings:
    """Toast defaults."""

    toast_delay: int = 5000  # Milliseconds
    toast_auto_hide: bool = True


@dataclass
class ScreenkitSettings:
    engine: EngineSettings = field(default_factory=EngineSettings)
    templates: TemplateSettings = field(default_factory=TemplateSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    feedback: FeedbackSettings = field(default_factory=FeedbackSettings)
    root: Path | None = None  # Directory holding the settings file

    @property
    def templates_dir(self) -> Path | None:
        """Absolute project templates directory, if configured."""
        if not self.templates.directory:
            return None
        directory = Path(self.templates.directory)
        if not directory.is_absolute() and self.root is not None:
            directory = self.root / directory
        return directory


def load_settings(path: Path) -> ScreenkitSettings:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise SettingsError(f"{path}: {exc}") from exc

    engine_data = data.get("engine", {})
    templates_data = data.get("templates", {})
    logging_data = data.get("logging", {})
    feedback_data = data.get("feedback", {})

    engine = EngineSettings(
        search_chunk=engine_data.get("search_chunk", 10),
        max_workers=engine_data.get("max_workers", 1),
        strict=engine_data.get("strict", False),
        data_source_errors=engine_data.get("data_source_errors", "raise"),
    )
    _validate_engine(engine, path)

    templates = TemplateSettings(directory=templates_data.get("directory"))

    logging_settings = LoggingSettings(
        level=str(logging_data.get("level", "INFO")).upper(),
        directory=logging_data.get("directory", ".screenkit/logs"),
    )

    feedback = FeedbackSettings(
        toast_delay=feedback_data.get("toast_delay", 5000),
        toast_auto_hide=feedback_data.get("toast_auto_hide", True),
    )

    return ScreenkitSettings(
        engine=engine,
        templates=templates,
        logging=logging_settings,
        feedback=feedback,
        root=path.parent,
    )


def find_settings(start: Path | None = None) -> ScreenkitSettings:
    """Load the nearest ``screenkit.toml`` walking up from *start*.

    Returns default settings when no file is found.
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / SETTINGS_FILENAME
        if candidate.is_file():
            return load_settings(candidate)
    return ScreenkitSettings()


def _validate_engine(engine: EngineSettings, path: Path) -> None:
    if engine.data_source_errors not in DATA_SOURCE_POLICIES:
        raise SettingsError(
            f"{path}: engine.data_source_errors must be one of "
            f"{', '.join(DATA_SOURCE_POLICIES)}, got: {engine.data_source_errors!r}"
        )
    if not isinstance(engine.search_chunk, int) or engine.search_chunk < 1:
        raise SettingsError(f"{path}: engine.search_chunk must be a positive integer")
    if not isinstance(engine.max_workers, int) or engine.max_workers < 1:
        raise SettingsError(f"{path}: engine.max_workers must be a positive integer")
