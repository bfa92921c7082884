"""Vellum templates application.

Owns the view collections, the global router, helper registries and the
kida engine, and drives a view through layout composition and rendering.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, Self

from vellum._internal.types import MISSING, Callback
from vellum.config import TemplatesConfig
from vellum.errors import ConfigurationError, LayoutNotApplied, LayoutNotRegistered, RenderError
from vellum.events import EventEmitter
from vellum.layout.compose import apply_layouts, find_layout
from vellum.layout.resolve import normalize_layout
from vellum.layout.types import LayoutStep
from vellum.routing.dispatch import Routes
from vellum.routing.route import STAGES
from vellum.routing.router import Router
from vellum.templating.engine import Engine
from vellum.templating.helpers import HelperRegistry
from vellum.templating.loader import is_glob, load_helpers
from vellum.views.item import Item
from vellum.views.view import VIEW_TYPES, View
from vellum.views.view_collection import Views

logger = logging.getLogger("vellum.app")

# Events re-emitted on the app when a collection emits them
_BUBBLED_EVENTS = ("view", "error")


class Templates(Routes):
    """The vellum application.

    Usage::

        app = Templates()
        app.create("pages")
        app.create("layouts", view_type="layout")

        app.layouts.add_view("base", {"content": "<body>{{ content }}</body>"})
        app.pages.add_view("a.html", {"content": "<p>{{ title }}</p>", "layout": "base"})

        app.on_load("*.html", lambda view, next: next())
        app.render("a.html", {"title": "Home"}, lambda err, view: print(view.content))

    Dispatch is two-tier: middleware registered on the app runs before
    middleware registered on the view's own collection, and an error in
    the app tier keeps the collection tier from running.
    """

    def __init__(
        self,
        config: TemplatesConfig | None = None,
        *,
        engine: Engine | None = None,
    ) -> None:
        self.config: TemplatesConfig = config or TemplatesConfig()
        self.name = "Templates"
        self.events = EventEmitter()
        self.engine = engine or Engine(self.config)
        self.views: dict[str, Views] = {}
        self.view_types: dict[str, list[str]] = {t: [] for t in sorted(VIEW_TYPES)}
        self.sync_registry = HelperRegistry("sync")
        self.async_registry = HelperRegistry("async")
        self._router: Router | None = None

    # -- Events --

    def on(self, name: str, listener: Callable[..., Any]) -> Callable[..., Any]:
        """Subscribe *listener* to app event *name*."""
        return self.events.on(name, listener)

    def emit(self, name: str, *args: Any) -> bool:
        return self.events.emit(name, *args)

    # -- Routing --

    def stage_methods(self) -> Iterable[str]:
        return (*STAGES, *self.config.methods)

    def _collection_for(self, item: Item) -> Routes | None:
        name = item.options.get("collection")
        if not name:
            return None
        return self.views.get(name)

    # -- Collections --

    def create(
        self,
        name: str,
        items: Mapping[str, Any] | Sequence[Any] | None = None,
        *,
        view_type: str | Iterable[str] = "renderable",
        **options: Any,
    ) -> Views:
        """Create a named view collection and register it on the app.

        The collection is reachable as ``app.views[name]`` and as the
        attribute ``app.<name>``. Its ``view`` and ``error`` events are
        re-emitted on the app.
        """
        if name in self.views:
            msg = f"A view collection named {name!r} already exists."
            raise ConfigurationError(msg)
        if hasattr(type(self), name):
            msg = f"Collection name {name!r} shadows a Templates attribute."
            raise ConfigurationError(msg)

        options.setdefault("rename_key", self.config.rename_key)
        views = Views(name=name, view_type=view_type, app=self, engine=self.engine, **options)
        for event in _BUBBLED_EVENTS:
            views.events.on(event, self._bubble(event))

        self.views[name] = views
        for view_type_name in views.view_type:
            self.view_types[view_type_name].append(name)
        logger.debug("created collection %r (%s)", name, ", ".join(views.view_type))

        if items is not None:
            views.add_items(items)
        return views

    def collection(
        self,
        items: Mapping[str, Any] | Sequence[Any] | None = None,
        **options: Any,
    ) -> Views:
        """Create an unregistered collection whose views load through the app.

        Its views are not collection-scoped, so only app middleware runs.
        """
        options.setdefault("rename_key", self.config.rename_key)
        views = Views(app=self, engine=self.engine, **options)
        for event in _BUBBLED_EVENTS:
            views.events.on(event, self._bubble(event))
        if items is not None:
            views.add_items(items)
        return views

    def _bubble(self, event: str) -> Callable[..., None]:
        def forward(*args: Any) -> None:
            if not self.events.emit(event, *args) and event == "error":
                logger.error("unhandled collection error: %s", args[0], exc_info=args[0])

        return forward

    def __getattr__(self, name: str) -> Views:
        views = self.__dict__.get("views")
        if views is not None and name in views:
            return views[name]
        msg = f"{type(self).__name__!r} object has no attribute {name!r}"
        raise AttributeError(msg)

    def get_views(self, name: str) -> Views | None:
        return self.views.get(name)

    def find(self, name: str, collection: str | None = None) -> View | None:
        """Find a view by key across collections (or in *collection*)."""
        names = [collection] if collection else list(self.views)
        for collection_name in names:
            views = self.views.get(collection_name)
            if views is None:
                continue
            view = views.get_view(name)
            if view is not None:
                return view
        return None

    def layout_stack(self) -> tuple[dict[str, View], int]:
        """Union of every layout-type collection, in alias order.

        Returns the stack and how many layouts were registered.
        """
        stack: dict[str, View] = {}
        registered = 0
        for collection_name in self._layout_collections():
            for key, view in self.views[collection_name].items.items():
                stack[key] = view  # type: ignore[assignment]
                registered += 1
        return stack, registered

    def _layout_collections(self) -> list[str]:
        names: list[str] = []
        for view_type in self.config.layout_types:
            for name in self.view_types.get(view_type, ()):
                if name not in names:
                    names.append(name)
        return names

    # -- Layouts --

    def apply_layout(self, view: View) -> View:
        """Wrap *view* in its layout chain, in place.

        No-op if a layout was already applied or the view has no layout.
        Dispatches ``preLayout``, ``onLayout`` for every layout in the
        chain (with ``view.current_layout`` set) and ``postLayout``.

        Raises:
            LayoutNotRegistered: The layout (or an ancestor) is unknown.
            LayoutCycleError: The chain references a layout twice.
            LayoutNotApplied: Composition left the content unchanged.
        """
        if view.options.get("layout_applied"):
            return view

        self.handle("preLayout", view)
        stack, registered = self.layout_stack()

        name = view.layout
        if name is None and view.is_renderable:
            name = normalize_layout(self.config.default_layout)
        if name is None:
            return view

        if registered == 0 or find_layout(name, stack) is None:
            raise LayoutNotRegistered(view.path, name)

        def on_layout(step: LayoutStep, history: tuple[LayoutStep, ...]) -> None:
            view.current_layout = step.layout
            view.options["layout_stack"] = list(history)
            self.handle("onLayout", view)
            view.current_layout = None

        original = view.content or ""
        result = apply_layouts(
            original,
            name,
            stack,
            tag=self.config.layout_tag,
            path=view.path,
            on_layout=on_layout,
        )
        if result.result == original:
            raise LayoutNotApplied(view.path, name)

        view.options["layout_applied"] = True
        view.options["layout_stack"] = list(result.history)
        view.contents = result.result

        self.handle("postLayout", view)
        return view

    # -- Rendering --

    def compile(self, view: View | str, locals_: Mapping[str, Any] | None = None) -> View:
        """Apply the layout and compile *view*'s source into a render function."""
        view = self._resolve_view(view)
        self.apply_layout(view)
        view.engine_instance = self.engine
        view.compile(locals_)
        return view

    def context(self, view: View, locals_: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Build the render context: sync helpers, then the view context."""
        ctx = {**self.sync_registry.as_dict(), **view.context(locals_)}
        ctx["path"] = view.path
        return ctx

    def render(
        self,
        view: View | str,
        locals_: Mapping[str, Any] | None = None,
        callback: Callback | None = None,
    ) -> None:
        """Run *view* through the full render pipeline.

        ``preRender`` (once) -> layouts -> ``preCompile`` -> compile ->
        ``postCompile`` -> kida render -> ``postRender``. Calls
        ``callback(err, view)`` when done. Every failure is reported once
        on the ``error`` event; without a callback it is also raised.
        """
        failures: list[BaseException] = []

        def remember(err: BaseException | None, _view: Any = None) -> None:
            if err is not None:
                failures.append(err)

        cb = callback or remember

        try:
            view = self._resolve_view(view)
        except RenderError as exc:
            self.handle_error("render", Item(path=str(view)), cb)(exc)
            self._raise_first(failures)
            return

        report = self.handle_error("render", view, cb)

        def after_post_compile(err: BaseException | None, _view: Any = None) -> None:
            if err is not None:
                cb(err, view)
                return

            def after_engine(err: BaseException | None, html: str | None = None) -> None:
                if err is not None:
                    report(err)
                    return
                view.contents = html
                self.handle("postRender", view, cb)

            self.engine.render(
                view.fn,
                self.context(view, locals_),
                after_engine,
                async_helpers=self.async_registry.as_dict(),
            )

        def after_pre_compile(err: BaseException | None, _view: Any = None) -> None:
            if err is not None:
                cb(err, view)
                return
            try:
                view.engine_instance = self.engine
                view.compile(locals_)
            except Exception as exc:
                report(exc)
                return
            self.handle("postCompile", view, after_post_compile)

        def after_pre_render(err: BaseException | None, _view: Any = None) -> None:
            if err is not None:
                cb(err, view)
                return
            try:
                self.apply_layout(view)
            except Exception as exc:
                report(exc)
                return
            self.handle("preCompile", view, after_pre_compile)

        self.handle_once("preRender", view, after_pre_render)
        self._raise_first(failures)

    @staticmethod
    def _raise_first(failures: list[BaseException]) -> None:
        if failures:
            raise failures[0]

    def _resolve_view(self, view: View | str) -> View:
        if isinstance(view, View):
            return view
        found = self.find(view)
        if found is None:
            msg = f"Templates#render: cannot find view {view!r}"
            raise RenderError(msg)
        return found

    # -- Helpers --

    def helper(self, name: str, fn: Callable[..., Any] = MISSING) -> Any:
        """Get (one argument) or register (two arguments) a sync helper.

        Raises ``TypeError`` when registering something not callable.
        """
        if fn is MISSING:
            return self.sync_registry.get(name)
        self.sync_registry.set(name, fn)
        return self

    def async_helper(self, name: str, fn: Callable[..., Any] = MISSING) -> Any:
        """Get (one argument) or register (two arguments) an async helper."""
        if fn is MISSING:
            return self.async_registry.get(name)
        self.async_registry.set(name, fn)
        return self

    def helpers(self, source: Any, *, cwd: str | Path | None = None) -> Self:
        """Register many sync helpers.

        *source* is a mapping of name -> function, a mapping of such
        mappings, a sequence of mappings, or glob pattern(s) naming
        helper modules. A glob that matches nothing is a no-op.
        """
        self._register_many(self.helper, source, cwd)
        return self

    def async_helpers(self, source: Any, *, cwd: str | Path | None = None) -> Self:
        """Register many async helpers. Accepts the same sources as ``helpers``."""
        self._register_many(self.async_helper, source, cwd)
        return self

    def _register_many(
        self,
        register: Callable[[str, Callable[..., Any]], Any],
        source: Any,
        cwd: str | Path | None,
    ) -> None:
        if is_glob(source):
            source = load_helpers(source, cwd=cwd or self.config.helper_cwd)
            if not source:
                return

        if isinstance(source, Sequence) and not isinstance(source, (str, bytes)):
            for entry in source:
                self._register_many(register, entry, cwd)
            return

        if not isinstance(source, Mapping):
            msg = "expected helpers to be a mapping."
            raise TypeError(msg)

        for name, value in source.items():
            if isinstance(value, Mapping):
                self._register_many(register, value, cwd)
            else:
                register(name, value)
