"""Shared pytest fixtures for Screenkit tests."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from screenkit.core.settings import EngineSettings
from screenkit.runtime.composer import Composer
from screenkit.runtime.record_store import InMemoryRecordStore
from screenkit.runtime.template_renderer import TemplateRenderer

COUNTRIES = [
    {"id": 1, "name": "France"},
    {"id": 2, "name": "Germany"},
    {"id": 3, "name": "Japan"},
    {"id": 4, "name": "Canada"},
    {"id": 5, "name": "Spain"},
]

CITIES = [
    {"id": 10, "name": "Paris", "country_id": 1},
    {"id": 11, "name": "Lyon", "country_id": 1},
    {"id": 20, "name": "Berlin", "country_id": 2},
    {"id": 30, "name": "Tokyo", "country_id": 3},
]

IDEAS = [
    {"id": 1, "title": "Dark mode", "active": True},
    {"id": 2, "title": "Offline sync", "active": False},
    {"id": 3, "title": "CSV export", "active": True},
]

ROLES = [
    {"id": 1, "name": "admin", "active": True},
    {"id": 2, "name": "editor", "active": True},
    {"id": 3, "name": "legacy", "active": False},
]

USERS = [
    {"id": 1, "name": "Ann", "email": "ann@example.com", "role": "admin"},
    {"id": 2, "name": "Bob", "email": "bob@example.com", "role": "editor"},
]


def _active(rows):
    return [row for row in rows if row["active"]]


@pytest.fixture
def store() -> InMemoryRecordStore:
    """Record store seeded with countries, cities, ideas, roles and users."""
    records = InMemoryRecordStore()
    records.add("Country", COUNTRIES)
    records.add("City", CITIES)
    records.add("Idea", IDEAS)
    records.add("Role", ROLES)
    records.add("User", USERS)
    records.register_scope("Idea", "active", _active)
    records.register_scope("Role", "active", _active)
    return records


@pytest.fixture
def composer(store: InMemoryRecordStore) -> Composer:
    """Composer over the seeded store with default engine settings."""
    return Composer(store=store)


@pytest.fixture
def strict_composer(store: InMemoryRecordStore) -> Composer:
    return Composer(store=store, settings=EngineSettings(strict=True))


@pytest.fixture
def renderer() -> TemplateRenderer:
    """Renderer using the built-in templates only."""
    return TemplateRenderer()


@pytest.fixture(autouse=True)
def reset_screenkit_logger() -> Iterator[None]:
    """Drop handlers installed by setup_logging() so tests stay isolated."""
    yield
    logger = logging.getLogger("screenkit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
