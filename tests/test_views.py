"""Tests for vellum.views.view_collection: Views, view types, onLoad."""

from typing import Any

import pytest

from vellum.app import Templates
from vellum.config import TemplatesConfig
from vellum.errors import ConfigurationError
from vellum.templating.engine import Engine
from vellum.views.view import View
from vellum.views.view_collection import Views, normalize_view_types


def _tracker(calls: list[str], name: str) -> Any:
    def handler(view: View, next: Any) -> None:
        calls.append(f"{name}:{view.path}")
        next()

    return handler


class TestNormalizeViewTypes:
    def test_default(self) -> None:
        assert normalize_view_types(None) == ("renderable",)

    def test_string_and_sequence(self) -> None:
        assert normalize_view_types("layout") == ("layout",)
        assert normalize_view_types(["partial", "layout"]) == ("partial", "layout")

    def test_unknown(self) -> None:
        with pytest.raises(ConfigurationError, match="Invalid view type"):
            normalize_view_types("page")

    def test_empty(self) -> None:
        with pytest.raises(ConfigurationError):
            normalize_view_types([])


class TestViews:
    def test_items_are_views(self) -> None:
        views = Views(name="pages")
        view = views.add_view("a.html", {"content": "x"})
        assert isinstance(view, View)
        assert views.get_view("a.html") is view
        assert views.views == {"a.html": view}

    def test_view_type_stamped(self) -> None:
        views = Views(name="layouts", view_type="layout")
        view = views.add_view("base.html", {})
        assert view.is_layout
        assert view.options["view_type"] == ["layout"]

    def test_view_event(self) -> None:
        views = Views(name="pages")
        seen: list[View] = []
        views.events.on("view", seen.append)
        view = views.add_view("a.html", {})
        assert seen == [view]

    def test_engine_assigned(self) -> None:
        engine = Engine()
        views = Views(name="pages", engine=engine)
        assert views.add_view("a.html", {}).engine_instance is engine

    def test_add_views_and_delete(self) -> None:
        views = Views(name="pages")
        views.add_views({"a.html": {}, "b.html": {}})
        views.delete_view("a.html")
        assert list(views.items) == ["b.html"]

    def test_set_view_skips_add_item_event(self) -> None:
        views = Views(name="pages")
        seen: list[Any] = []
        views.events.on("addItem", seen.append)
        views.set_view("a.html", {})
        assert seen == []
        assert "a.html" in views


class TestOnLoad:
    def test_standalone_collection_runs_own_middleware(self) -> None:
        calls: list[str] = []
        views = Views(name="pages")
        views.on_load("*", _tracker(calls, "pages"))
        views.add_view("a.html", {})
        assert calls == ["pages:a.html"]

    def test_runs_once_per_view(self) -> None:
        calls: list[str] = []
        views = Views(name="pages")
        views.on_load("*", _tracker(calls, "pages"))
        view = views.add_view("a.html", {})
        views.set_view(view)
        assert calls == ["pages:a.html"]

    def test_queued_views_are_loaded(self) -> None:
        calls: list[str] = []
        views = Views(name="pages")
        views.on_load("*", _tracker(calls, "pages"))
        views.events.on(
            "addItem",
            lambda args: views.enqueue("b.html", {}) if args[0] == "a.html" else None,
        )
        views.add_view("a.html", {})
        assert calls == ["pages:a.html", "pages:b.html"]

    def test_disabled_by_app_config(self) -> None:
        calls: list[str] = []
        app = Templates(TemplatesConfig(on_load=False))
        app.on_load("*", _tracker(calls, "app"))
        view = app.create("pages").add_view("a.html", {})
        assert calls == []
        assert "handled" not in view.options

    def test_disabled_by_collection_option(self) -> None:
        calls: list[str] = []
        app = Templates()
        app.on_load("*", _tracker(calls, "app"))
        app.create("pages", on_load=False).add_view("a.html", {})
        assert calls == []

    def test_disabled_by_view_option(self) -> None:
        calls: list[str] = []
        app = Templates()
        app.on_load("*", _tracker(calls, "app"))
        pages = app.create("pages")
        pages.add_view("a.html", {"options": {"on_load": False}})
        pages.add_view("b.html", {})
        assert calls == ["app:b.html"]

    def test_rename_key_from_config(self) -> None:
        app = Templates(TemplatesConfig(rename_key=lambda key: key.rsplit("/", 1)[-1]))
        pages = app.create("pages")
        view = pages.add_view("site/pages/a.html", {})
        assert view.key == "a.html"
        assert view.path == "site/pages/a.html"
        assert pages.get_view("site/pages/a.html") is view
