"""View: an Item that can be laid out, compiled and rendered."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from vellum.layout.resolve import resolve_layout
from vellum.views.item import Item

if TYPE_CHECKING:
    from vellum.templating.engine import Engine

# Values accepted in ``options["view_type"]``
VIEW_TYPES = frozenset({"renderable", "partial", "layout"})

# Unset marker for the lazily-resolved layout name
_UNRESOLVED: Any = object()


class View(Item):
    """A renderable item.

    Adds the render context, the view-type flags assigned by collections
    and the lazily-resolved ``layout`` name.

    Usage::

        view = View({"path": "a.html", "content": "<h1>{{ title }}</h1>"})
        view.render({"title": "Home"}, lambda err, res: print(res.content))
    """

    # Resolver consulted the first time ``layout`` is read
    layout_resolver: Callable[[View], str | None] = staticmethod(resolve_layout)

    def __init__(self, item: Mapping[str, Any] | Item | None = None, **fields: Any) -> None:
        self._layout: Any = _UNRESOLVED
        self._engine: str | None = None
        self.engine_instance: Engine | None = None
        self.fn: Any = None
        self.current_layout: str | None = None
        # A "layout" key is routed through the property setter by Item
        super().__init__(item, **fields)

    # -- Context --

    def context(self, *locals_: Mapping[str, Any] | None) -> dict[str, Any]:
        """Build the render context.

        ``locals`` is overridden by ``data`` (front-matter), which is in
        turn overridden by each mapping passed here, in order.
        """
        ctx: dict[str, Any] = {**self.locals, **self.data}
        for extra in locals_:
            if extra:
                ctx.update(extra)
        return ctx

    # -- Compile / render --

    def compile(self, settings: Mapping[str, Any] | None = None) -> View:
        """Compile the view's content into a render function."""
        engine = self._require_engine()
        self.fn = engine.compile(self.content or "", settings)
        return self

    def render(
        self,
        locals_: Mapping[str, Any] | None = None,
        callback: Callable[..., Any] | None = None,
    ) -> View:
        """Render the view and replace its contents with the result.

        ``callback(err, view)`` is called when rendering finishes. Without a
        callback, rendering errors are raised.
        """
        if self.fn is None:
            self.compile(locals_)

        context = self.context(locals_)
        context["path"] = self.path
        engine = self._require_engine()

        def done(err: BaseException | None, result: str | None = None) -> None:
            if err is not None:
                if callback is None:
                    raise err
                callback(err, None)
                return
            self.contents = result
            if callback is not None:
                callback(None, self)

        engine.render(self.fn, context, done)
        return self

    async def render_async(self, locals_: Mapping[str, Any] | None = None) -> View:
        """Render inside a running event loop, awaiting async helpers."""
        if self.fn is None:
            self.compile(locals_)
        context = self.context(locals_)
        context["path"] = self.path
        self.contents = await self._require_engine().render_async(self.fn, context)
        return self

    def _require_engine(self) -> Engine:
        if self.engine_instance is None:
            from vellum.templating.engine import Engine

            self.engine_instance = Engine()
        return self.engine_instance

    # -- View types --

    @property
    def view_type(self) -> list[str]:
        value = self.options.get("view_type") or "renderable"
        if isinstance(value, str):
            return [value]
        return list(value)

    def is_type(self, view_type: str) -> bool:
        """Return True if the view has *view_type* (renderable, partial, layout)."""
        return view_type in self.view_type

    @property
    def is_renderable(self) -> bool:
        return self.is_type("renderable")

    @property
    def is_partial(self) -> bool:
        return self.is_type("partial")

    @property
    def is_layout(self) -> bool:
        return self.is_type("layout")

    # -- Lazily resolved fields --

    @property
    def layout(self) -> str | None:
        """Name of the layout to apply, resolved on first access."""
        if self._layout is _UNRESOLVED:
            self._layout = self.layout_resolver(self)
        return self._layout

    @layout.setter
    def layout(self, value: str | None) -> None:
        self._layout = value

    @property
    def engine(self) -> str | None:
        """Engine name, or the file extension used to select one."""
        if self._engine:
            return self._engine
        engine = self.options.get("engine") or self.locals.get("engine") or self.data.get("engine")
        if not engine and self.path:
            engine = os.path.splitext(self.path)[1] or None
            if engine:
                self.data["ext"] = engine
        return engine

    @engine.setter
    def engine(self, value: str | None) -> None:
        self._engine = value

    @property
    def layout_names(self) -> list[str]:
        """Names of the layouts applied, innermost first."""
        return [step.layout for step in self.options.get("layout_stack", ())]

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        for name in ("engine_instance", "fn", "current_layout"):
            result.pop(name, None)
        if self._layout is not _UNRESOLVED:
            result["layout"] = self._layout
        return result
