"""Router: ordered routes dispatched against item paths.

Routes are kept in registration order. Dispatching a stage collects
every route whose pattern matches the item path and runs their handlers
one after another through a ``next`` continuation.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from vellum._internal.types import Handler, Next
from vellum.routing.route import STAGES, Route, RouteMatch

if TYPE_CHECKING:
    from vellum.views.item import Item

logger = logging.getLogger("vellum.routing")

# Signals passed to next() that are not errors
_SKIP_ROUTE = "route"

type Step = Callable[[Next], None]


class Router:
    """Ordered route table with continuation-passing dispatch.

    Usage::

        router = Router()
        router.route("blog/:title").on_load(set_permalink)
        router.handle("onLoad", item, done)

    Every handler has the signature ``handler(item, next)``. Calling
    ``next()`` runs the next matching handler, ``next(err)`` stops the
    chain with an error and ``next("route")`` skips what is left of the
    current route. A handler that never calls ``next`` stalls the chain.
    """

    __slots__ = ("_methods", "_params", "_routes")

    def __init__(self, methods: Iterable[str] = STAGES) -> None:
        self._methods: set[str] = set(methods)
        self._routes: list[Route] = []
        self._params: dict[str, list[Callable[..., Any]]] = {}

    @property
    def methods(self) -> frozenset[str]:
        """Recognized stage names."""
        return frozenset(self._methods)

    @property
    def routes(self) -> list[Route]:
        """Registered routes in registration order."""
        return list(self._routes)

    def method(self, *names: str) -> None:
        """Add custom stage names."""
        self._methods.update(names)

    def route(self, pattern: str | re.Pattern[str]) -> Route:
        """Create a route for *pattern* and append it to the table.

        Each call creates a new route, so handlers registered later never
        run before handlers registered earlier.
        """
        route = Route(pattern, self._methods)
        self._routes.append(route)
        return route

    def param(self, name: str, fn: Callable[..., Any]) -> None:
        """Register a callback for routes that capture parameter *name*.

        Called as ``fn(item, next, value)`` before the route's handlers.
        """
        if not callable(fn):
            msg = f"expected param callback for {name!r} to be callable."
            raise TypeError(msg)
        self._params.setdefault(name, []).append(fn)

    def match(self, method: str, path: str) -> list[RouteMatch]:
        """Return every route with *method* handlers matching *path*, in order."""
        matches: list[RouteMatch] = []
        for route in self._routes:
            if not route.handles(method):
                continue
            params = route.match(path)
            if params is not None:
                matches.append(RouteMatch(route=route, params=params))
        return matches

    def handle(self, method: str, item: Item, done: Callable[..., Any]) -> None:
        """Run the *method* handlers that match *item* in order.

        ``done(err)`` is called once: with the first error, or with
        ``None`` after the last handler calls ``next()``. Handlers that
        call ``next()`` synchronously are driven by a loop, so the stack
        does not grow with the number of matching routes. A handler that
        calls ``next()`` later resumes the loop from that call.
        """
        steps: list[tuple[int, Step]] = []
        for index, match in enumerate(self.match(method, item.path or "")):
            steps.append((index, _bind_params(item, match.params)))
            for name, value in match.params.items():
                for fn in self._params.get(name, ()):
                    steps.append((index, _param_step(fn, item, value)))
            for handler in match.route.handlers_for(method):
                steps.append((index, _handler_step(handler, item)))

        logger.debug("%s: %d step(s) for %r", method, len(steps), item.path)

        position = 0
        finished = False
        running = False
        resumed = False

        def finish(err: BaseException | None) -> None:
            nonlocal finished
            finished = True
            done(err)

        def run() -> None:
            nonlocal position, running, resumed
            running = True
            try:
                while not finished:
                    if position >= len(steps):
                        finish(None)
                        return
                    _, step = steps[position]
                    position += 1
                    resumed = False
                    try:
                        step(next_)
                    except Exception as exc:
                        if finished:
                            logger.error(
                                "%s handler for %r raised after its chain completed",
                                method,
                                item.path,
                                exc_info=exc,
                            )
                        else:
                            finish(exc)
                        return
                    if not resumed:
                        return
            finally:
                running = False

        def next_(err: Any = None) -> None:
            nonlocal position, resumed
            if finished:
                return
            if err == _SKIP_ROUTE:
                current = steps[position - 1][0] if position else -1
                while position < len(steps) and steps[position][0] == current:
                    position += 1
                err = None
            if err is not None:
                finish(err)
                return
            if running:
                resumed = True
                return
            run()

        run()


def _bind_params(item: Item, params: dict[str, str]) -> Step:
    def step(next_: Next) -> None:
        item.params = dict(params)
        next_()

    return step


def _param_step(fn: Callable[..., Any], item: Item, value: str) -> Step:
    def step(next_: Next) -> None:
        fn(item, next_, value)

    return step


def _handler_step(handler: Handler, item: Item) -> Step:
    def step(next_: Next) -> None:
        handler(item, next_)

    return step
