"""Dispatcher: lifecycle stage handling shared by apps and collections.

``Routes`` is mixed into every object that owns a router. The host
provides ``name``, ``events`` and a ``_router`` slot initialised to
``None``; the router itself is created on first use so routes registered
during configuration keep their order no matter when the first item is
dispatched.
"""

from __future__ import annotations

import logging
import re
import traceback
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, Self

from vellum._internal.types import MISSING, Callback, Handler
from vellum.errors import DispatchError
from vellum.routing.route import STAGES, Route
from vellum.routing.router import Router

if TYPE_CHECKING:
    from vellum.events import EventEmitter
    from vellum.views.item import Item

logger = logging.getLogger("vellum.routing")


def error_source(err: BaseException) -> str:
    """Describe where *err* was raised, or ``""`` if it was never raised."""
    frames = traceback.extract_tb(err.__traceback__)
    if not frames:
        return ""
    frame = frames[-1]
    return f"{frame.filename}:{frame.lineno} in {frame.name}"


def annotate_error(err: BaseException, *, reason: str, method: str) -> BaseException:
    """Attach ``reason``, ``source``, ``method`` and ``handled`` to *err*.

    Exceptions that refuse new attributes are wrapped in a
    ``DispatchError`` chained to the original.
    """
    fields = {
        "reason": reason,
        "source": error_source(err),
        "method": method,
        "handled": True,
    }
    try:
        for name, value in fields.items():
            setattr(err, name, value)
    except AttributeError:
        wrapped = DispatchError(reason)
        wrapped.__cause__ = err
        wrapped.source = fields["source"]
        wrapped.method = method
        wrapped.handled = True
        return wrapped
    return err


def _scoped_locals(
    item: Item, locals_: dict[str, Any], done: Callable[..., None]
) -> Callable[..., None]:
    saved = {key: item.locals.get(key, MISSING) for key in locals_}
    item.locals.update(locals_)

    def finish(err: BaseException | None = None, *args: Any) -> None:
        for key, value in saved.items():
            if value is MISSING:
                item.locals.pop(key, None)
            else:
                item.locals[key] = value
        done(err, *args)

    return finish


def _stage(method: str) -> Callable[..., Any]:
    def register(self: Routes, pattern: str | re.Pattern[str], *handlers: Handler) -> Routes:
        self.route(pattern).add(method, *handlers)
        return self

    register.__name__ = method
    register.__doc__ = f"Register ``{method}`` middleware for items matching *pattern*."
    return register


class Routes:
    """Route registration and two-tier stage dispatch.

    Usage::

        app.on_load("blog/:title", add_permalink)
        app.pre_render("*.md", markdown_to_html)
        app.handle("onLoad", view, lambda err, view: ...)
    """

    name: str
    events: EventEmitter
    _router: Router | None

    def stage_methods(self) -> Iterable[str]:
        """Stage names the router recognises. Hosts may extend this."""
        return STAGES

    def lazy_router(self) -> Router:
        """Return the router, creating it on first use."""
        if self._router is None:
            self._router = Router(methods=self.stage_methods())
        return self._router

    @property
    def router(self) -> Router:
        return self.lazy_router()

    # -- Registration --

    def route(self, pattern: str | re.Pattern[str]) -> Route:
        """Create a new route for *pattern*; returns it for chaining."""
        return self.lazy_router().route(pattern)

    def all(self, pattern: str | re.Pattern[str], *handlers: Handler) -> Self:
        """Register *handlers* for every stage on items matching *pattern*."""
        self.route(pattern).all(*handlers)
        return self

    def param(self, name: str, fn: Callable[..., Any]) -> Self:
        """Register a route parameter callback ``fn(item, next, value)``."""
        self.lazy_router().param(name, fn)
        return self

    def handlers(self, *methods: str) -> Self:
        """Register custom stage names so handlers can be added for them."""
        self.lazy_router().method(*methods)
        return self

    def stage(self, method: str, pattern: str | re.Pattern[str], *handlers: Handler) -> Self:
        """Register *handlers* for any stage, built-in or custom."""
        self.route(pattern).add(method, *handlers)
        return self

    on_load = _stage("onLoad")
    pre_compile = _stage("preCompile")
    pre_layout = _stage("preLayout")
    on_layout = _stage("onLayout")
    post_layout = _stage("postLayout")
    on_merge = _stage("onMerge")
    post_compile = _stage("postCompile")
    pre_render = _stage("preRender")
    post_render = _stage("postRender")

    # -- Dispatch --

    def handle(
        self,
        method: str,
        item: Item,
        callback: Callback | None = None,
        *,
        locals_: dict[str, Any] | None = None,
    ) -> None:
        """Run the *method* middleware stack for *item*.

        Records the stage in ``item.options["handled"]``, emits an event
        named after the stage, then runs matching handlers. Items that
        belong to a named collection are dispatched in two tiers: this
        router first, the collection's router only if that succeeds.

        ``callback(err, item)`` is called on completion. Errors are
        reported on the ``error`` event and never raised. *locals_* are
        visible on ``item.locals`` until the dispatch completes, then the
        previous values are restored.
        """
        logger.debug("handling %r middleware for %r", method, item.path)
        router = self.lazy_router()
        handled = item.options.setdefault("handled", [])
        done = self.handle_error(method, item, callback)
        if locals_:
            done = _scoped_locals(item, locals_, done)

        item.options["method"] = method
        handled.append(method)
        self.events.emit(method, item)

        collection = self._collection_for(item)
        if collection is None:
            router.handle(method, item, done)
            return

        def after_global(err: BaseException | None = None) -> None:
            if err is not None:
                done(err)
                return
            collection.dispatch_stage(method, item, done)

        router.handle(method, item, after_global)

    def handle_once(self, method: str, item: Item, callback: Callback | None = None) -> None:
        """Dispatch *method* only if it has not been handled for *item* yet."""
        handled = item.options.setdefault("handled", [])
        if method not in handled:
            self.handle(method, item, callback)
            return
        if callback is not None:
            callback(None, item)

    def dispatch_stage(self, method: str, item: Item, done: Callable[..., Any]) -> None:
        """Collection tier of a two-tier dispatch.

        Emits the stage on this object's events and runs this router
        without recording the stage a second time.
        """
        self.events.emit(method, item)
        self.lazy_router().handle(method, item, done)

    def handle_error(
        self,
        method: str,
        item: Item,
        callback: Callback | None = None,
    ) -> Callable[..., None]:
        """Build the completion function for one dispatch.

        The first time an error passes through, it is annotated and
        emitted on the ``error`` event; errors that are already marked
        handled are passed on without being reported again.
        """

        def done(err: BaseException | None = None, *_: Any) -> None:
            if err is None:
                if callback is not None:
                    callback(None, item)
                return

            if not getattr(err, "handled", False):
                reason = f"{self.name}#handle({method!r}): {item.path}"
                err = annotate_error(err, reason=reason, method=method)
                logger.debug("%s failed: %s", reason, err)
                if not self.events.emit("error", err) and callback is None:
                    logger.error("%s", reason, exc_info=err)

            if callback is not None:
                callback(err, item)

        return done

    def _collection_for(self, item: Item) -> Routes | None:
        """Return the collection whose router forms the second dispatch tier."""
        return None
