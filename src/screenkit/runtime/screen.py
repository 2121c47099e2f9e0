"""
Screen base class.

A screen pairs a data query with a declarative layout. Subclasses override
``query`` and ``layout``; ``compose`` runs the composer and collects pending
feedback messages into a ``ScreenRender``.

Example:
    class UserEdit(Screen):
        name = "users.edit"
        title = "Edit user"

        def query(self, user_id=None, **params):
            return {"user": load_user(user_id)}

        def layout(self):
            return [Rows.make([Input.make("user.name").title("Name")])]
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from screenkit.core.errors import DataSourceError
from screenkit.core.settings import ScreenkitSettings
from screenkit.runtime.composer import Composer
from screenkit.runtime.render_tree import OptionItem, ScreenRender
from screenkit.specs.feedback import Feedback
from screenkit.specs.fields import Field
from screenkit.specs.layouts import Layout, Wrapper
from screenkit.specs.menu import RouteRef

logger = logging.getLogger(__name__)


class Screen:
    name: str = ""
    title: str | None = None
    description: str | None = None

    def __init__(self, settings: ScreenkitSettings | None = None) -> None:
        self.settings = settings or ScreenkitSettings()
        self.feedback = Feedback(
            toast_delay=self.settings.feedback.toast_delay,
            toast_auto_hide=self.settings.feedback.toast_auto_hide,
        )
        if not self.name:
            self.name = type(self).__name__

    def query(self, **params: Any) -> Mapping[str, Any]:
        """Data bag for the whole screen."""
        return {}

    def layout(self) -> Sequence[Field | Layout]:
        """Top-level layouts, in display order."""
        return []

    def compose(
        self,
        composer: Composer,
        params: Mapping[str, Any] | None = None,
        route: RouteRef | str | None = None,
    ) -> ScreenRender:
        """Compose the screen for one request.

        With ``data_source_errors = "empty"`` (on the composer or on the screen's
        own settings) a failing option source renders as an empty list and an
        error marker instead of aborting the screen.
        """
        data = self.query(**dict(params or {}))
        policies = (composer.settings.data_source_errors, self.settings.engine.data_source_errors)
        if composer.on_data_source_error is None and "empty" in policies:
            composer = composer.with_handler(self._empty_options)

        nodes = composer.compose(self.layout(), data, route=route)
        logger.debug(
            "Composed screen %s",
            self.name,
            extra={"context": {"nodes": len(nodes), "route": str(route) if route else None}},
        )
        return ScreenRender(
            name=self.name,
            title=self.title,
            description=self.description,
            data=dict(data),
            nodes=nodes,
            messages=self.feedback.drain(),
        )

    def search(
        self,
        composer: Composer,
        field_name: str,
        term: str,
        params: Mapping[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[OptionItem]:
        """Answer an interactive option search for one of this screen's fields.

        Raises:
            KeyError: no field named ``field_name`` is declared on the screen.
        """
        field = self.find_field(field_name)
        if field is None:
            raise KeyError(f"Screen '{self.name}' has no field named '{field_name}'")
        context = self.query(**dict(params or {}))
        return composer.search(field, term, limit=limit, context=context)

    def find_field(self, name: str) -> Field | None:
        """Last declared field named ``name`` (with or without the list marker)."""
        found = None
        for field in iter_fields(self.layout()):
            if name in (field.name, field.binding_key):
                found = field
        return found

    def _empty_options(self, field: Field, exc: DataSourceError) -> list[OptionItem]:
        logger.error(
            "Option source failed, rendering empty options: %s",
            exc,
            extra={"context": {"screen": self.name, "field": field.name}},
        )
        return []


def iter_fields(nodes: Sequence[Field | Layout]) -> Iterator[Field]:
    """Declared fields in declaration order, descending into layouts and slots."""
    for node in nodes:
        if isinstance(node, Field):
            yield node
        elif isinstance(node, Wrapper):
            for _, slot_nodes in node.slots:
                yield from iter_fields(slot_nodes)
        else:
            yield from iter_fields(node.children)
