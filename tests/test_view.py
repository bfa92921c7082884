"""Tests for vellum.views.view: context, view types, layout resolution."""

import pytest

from vellum.layout.types import LayoutStep
from vellum.views.view import View


class TestViewContext:
    def test_data_overrides_locals(self) -> None:
        view = View({"locals": {"title": "L", "a": 1}, "data": {"title": "D"}})
        assert view.context() == {"title": "D", "a": 1}

    def test_extra_locals_override_data(self) -> None:
        view = View({"data": {"title": "D"}})
        assert view.context({"title": "X"}, None, {"b": 2}) == {"title": "X", "b": 2}


class TestViewTypes:
    def test_default_is_renderable(self) -> None:
        view = View({"path": "a.html"})
        assert view.view_type == ["renderable"]
        assert view.is_renderable
        assert not view.is_layout

    def test_multiple_types(self) -> None:
        view = View({"path": "a.html", "options": {"view_type": ["partial", "layout"]}})
        assert view.is_partial
        assert view.is_layout
        assert not view.is_renderable
        assert view.is_type("layout")


class TestViewLayout:
    def test_resolved_from_data(self) -> None:
        view = View({"path": "a.html", "data": {"layout": "base"}})
        assert view.layout == "base"

    def test_data_wins_over_options(self) -> None:
        view = View({"data": {"layout": "a"}, "options": {"layout": "b"}})
        assert view.layout == "a"

    def test_falls_back_to_locals_then_options(self) -> None:
        assert View({"locals": {"layout": "l"}}).layout == "l"
        assert View({"options": {"layout": "o"}}).layout == "o"

    @pytest.mark.parametrize("value", ["", "none", "false", "null", "nil", False, None])
    def test_no_layout_values(self, value: object) -> None:
        view = View({"data": {"layout": value}})
        assert view.layout is None

    def test_explicit_layout_key(self) -> None:
        view = View({"path": "a.html", "layout": "base", "data": {"layout": "other"}})
        assert view.layout == "base"

    def test_memoized(self) -> None:
        view = View({"data": {"layout": "a"}})
        assert view.layout == "a"
        view.data["layout"] = "b"
        assert view.layout == "a"

    def test_setter(self) -> None:
        view = View({"data": {"layout": "a"}})
        view.layout = "b"
        assert view.layout == "b"

    def test_layout_names(self) -> None:
        view = View({"path": "a.html"})
        assert view.layout_names == []
        view.options["layout_stack"] = [LayoutStep("base", "x", "<b>x</b>")]
        assert view.layout_names == ["base"]

    def test_current_layout_starts_unset(self) -> None:
        assert View({"path": "a.html"}).current_layout is None


class TestViewEngine:
    def test_engine_from_extension(self) -> None:
        view = View({"path": "pages/a.html"})
        assert view.engine == ".html"
        assert view.data["ext"] == ".html"

    def test_engine_from_options(self) -> None:
        view = View({"path": "a.html", "options": {"engine": "kida"}})
        assert view.engine == "kida"

    def test_to_dict_drops_runtime_fields(self) -> None:
        view = View({"path": "a.html", "content": "x"})
        view.compile()
        result = view.to_dict()
        assert "fn" not in result
        assert "engine_instance" not in result
        assert "current_layout" not in result


class TestViewRender:
    def test_render_with_callback(self) -> None:
        view = View({"path": "a.html", "content": "<h1>{{ title }}</h1>"})
        results: list[tuple[object, object]] = []
        view.render({"title": "Home"}, lambda err, res: results.append((err, res)))
        assert results == [(None, view)]
        assert view.content == "<h1>Home</h1>"

    def test_path_in_context(self) -> None:
        view = View({"path": "a.html", "content": "{{ path }}"})
        view.render()
        assert view.content == "a.html"

    def test_render_error_raised_without_callback(self) -> None:
        def boom() -> str:
            raise ValueError("boom")

        view = View({"path": "a.html", "content": "{{ boom() }}", "locals": {"boom": boom}})
        with pytest.raises(Exception, match="boom"):
            view.render()

    def test_render_error_passed_to_callback(self) -> None:
        def boom() -> str:
            raise ValueError("boom")

        view = View({"path": "a.html", "content": "{{ boom() }}", "locals": {"boom": boom}})
        errors: list[BaseException] = []
        view.render(None, lambda err, res: errors.append(err))
        assert len(errors) == 1
        assert view.content == "{{ boom() }}"

    @pytest.mark.asyncio
    async def test_render_async(self) -> None:
        view = View({"path": "a.html", "content": "Hi {{ name }}"})
        await view.render_async({"name": "there"})
        assert view.content == "Hi there"
