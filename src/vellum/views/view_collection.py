"""Views: a collection of views with a view type and lifecycle hooks.

Every view stored in a ``Views`` collection is tagged with the
collection's name and view types, announced on the ``view`` event and
run through ``onLoad`` exactly once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from vellum._internal.types import MISSING
from vellum.errors import ConfigurationError
from vellum.routing.dispatch import Routes
from vellum.views.collection import Collection
from vellum.views.item import Item
from vellum.views.view import VIEW_TYPES, View

if TYPE_CHECKING:
    from vellum.app import Templates
    from vellum.routing.router import Router
    from vellum.templating.engine import Engine

logger = logging.getLogger("vellum.collection")


def normalize_view_types(value: str | Iterable[str] | None) -> tuple[str, ...]:
    """Return *value* as a tuple of known view types.

    Raises ``ConfigurationError`` for anything outside renderable,
    partial and layout.
    """
    if value is None:
        return ("renderable",)
    types = (value,) if isinstance(value, str) else tuple(value)
    unknown = [t for t in types if t not in VIEW_TYPES]
    if unknown or not types:
        msg = (
            f"Invalid view type(s) {unknown or list(types)!r}. "
            f"Expected any of: {', '.join(sorted(VIEW_TYPES))}"
        )
        raise ConfigurationError(msg)
    return types


class Views(Collection, Routes):
    """A named collection of ``View`` objects with its own router.

    Created by ``Templates.create()`` for app-owned collections, or
    directly for standalone use::

        pages = Views(name="pages")
        pages.on_load("*.md", lambda view, next: next())
        pages.add_view("home.md", {"content": "# Home"})

    Args:
        items: Initial views (mapping, sequence or collection).
        name: Collection name; stamped on ``view.options["collection"]``
            only when this collection is the one registered on *app*
            under that name.
        view_type: One or more of ``renderable``, ``partial``, ``layout``.
        app: Owning app. When set, ``onLoad`` is dispatched through the
            app so global middleware runs before collection middleware.
        engine: Template engine assigned to views for standalone rendering.
    """

    item_class = View

    def __init__(
        self,
        items: Mapping[str, Any] | Sequence[Any] | Collection | None = None,
        *,
        name: str | None = None,
        view_type: str | Iterable[str] | None = "renderable",
        app: Templates | None = None,
        engine: Engine | None = None,
        **kwargs: Any,
    ) -> None:
        self.name = name or "views"
        self.view_type = normalize_view_types(view_type)
        self.app = app
        self.engine = engine
        self._router: Router | None = None
        super().__init__(items, **kwargs)

    @property
    def views(self) -> dict[str, Item]:
        return self.items

    def item(self, key: Any, value: Any = MISSING) -> View:
        view = super().item(key, value)
        view.options.setdefault("view_type", list(self.view_type))
        if self.app is not None and self.app.views.get(self.name) is self:
            view.options["collection"] = self.name
        if self.engine is not None and getattr(view, "engine_instance", None) is None:
            view.engine_instance = self.engine
        return view  # type: ignore[return-value]

    def set_item(self, key: Any, value: Any = MISSING) -> View:
        """Store a view, emit ``view`` and dispatch ``onLoad`` once."""
        view = super().set_item(key, value)
        self.events.emit("view", view)
        if self._on_load_enabled(view):
            owner: Routes = self.app if self.app is not None else self
            owner.handle_once("onLoad", view)
        return view  # type: ignore[return-value]

    def _on_load_enabled(self, view: Item) -> bool:
        if self.app is not None and not self.app.config.on_load:
            return False
        if self.options.get("on_load", True) is False:
            return False
        return view.options.get("on_load", True) is not False

    # -- View-named aliases --

    def set_view(self, key: Any, value: Any = MISSING) -> View:
        return self.set_item(key, value)

    def add_view(self, key: Any, value: Any = MISSING) -> View:
        return self.add_item(key, value)  # type: ignore[return-value]

    def add_views(self, items: Mapping[str, Any] | Sequence[Any]) -> Views:
        return self.add_items(items)

    def get_view(self, key: str) -> View | None:
        return self.get_item(key)  # type: ignore[return-value]

    def delete_view(self, view: str | Item) -> Views:
        return self.delete_item(view)
