"""Route: a path pattern bound to per-stage middleware stacks.

A route owns an ordered list of layers. Each layer pairs a stage name
(``None`` for "every stage") with one handler, so the order handlers are
registered in is the order they run in.
"""

from __future__ import annotations

import re
from collections.abc import Set
from dataclasses import dataclass, field

from vellum._internal.types import Handler
from vellum.errors import ConfigurationError
from vellum.routing.params import PARAM_PATTERNS

# {name}, {name:type}, :name or a * wildcard
_TOKEN_RE = re.compile(r"\{(\w+)(?::(\w+))?\}|:(\w+)|\*")

# Built-in lifecycle stages, in the order a view moves through them
STAGES: tuple[str, ...] = (
    "onLoad",
    "preCompile",
    "preLayout",
    "onLayout",
    "postLayout",
    "onMerge",
    "postCompile",
    "preRender",
    "postRender",
)


def compile_pattern(pattern: str | re.Pattern[str]) -> re.Pattern[str]:
    """Compile a route pattern into an anchored regular expression.

    Examples::

        "blog/:title"        -> matches "blog/foo.md", captures title
        "docs/{slug}"        -> matches "docs/intro", captures slug
        "pages/{n:int}.html" -> matches "pages/3.html", captures n
        "*.hbs"              -> matches any path ending in ".hbs"

    A leading ``/`` is optional on both the pattern and the path.
    Compiled regular expressions are returned unchanged.
    """
    if isinstance(pattern, re.Pattern):
        return pattern

    parts: list[str] = []
    pos = 0
    source = pattern.lstrip("/")
    for token in _TOKEN_RE.finditer(source):
        parts.append(re.escape(source[pos : token.start()]))
        brace_name, brace_type, colon_name = token.groups()
        if brace_name:
            param_type = brace_type or "str"
            if param_type not in PARAM_PATTERNS:
                msg = (
                    f"Unknown parameter type {param_type!r} in route pattern {pattern!r}. "
                    f"Expected one of: {', '.join(sorted(PARAM_PATTERNS))}"
                )
                raise ConfigurationError(msg)
            parts.append(f"(?P<{brace_name}>{PARAM_PATTERNS[param_type]})")
        elif colon_name:
            parts.append(f"(?P<{colon_name}>{PARAM_PATTERNS['str']})")
        else:
            parts.append(".*")
        pos = token.end()
    parts.append(re.escape(source[pos:]))
    try:
        return re.compile("^/?" + "".join(parts) + "$")
    except re.error as exc:
        msg = f"Invalid route pattern {pattern!r}: {exc}"
        raise ConfigurationError(msg) from exc


@dataclass(frozen=True, slots=True)
class Layer:
    """One handler registered on a route.

    ``method`` is the stage name, or ``None`` when the handler runs for
    every stage.
    """

    method: str | None
    handler: Handler

    def handles(self, method: str) -> bool:
        return self.method is None or self.method == method


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of matching an item path against a route."""

    route: Route
    params: dict[str, str]


@dataclass(slots=True)
class Route:
    """A path pattern with an ordered middleware stack.

    Created by ``Router.route()``; handlers are added with the stage
    methods, which return the route for chaining::

        router.route("blog/:title").on_load(add_date).pre_render(add_toc)
    """

    pattern: str | re.Pattern[str]
    methods: Set[str] = frozenset(STAGES)
    regex: re.Pattern[str] = field(init=False)
    stack: list[Layer] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.regex = compile_pattern(self.pattern)

    def match(self, path: str) -> dict[str, str] | None:
        """Return captured parameters if *path* matches, else ``None``."""
        if isinstance(self.pattern, re.Pattern):
            found = self.regex.search(path)
        else:
            found = self.regex.match(path)
        if found is None:
            return None
        return {k: v for k, v in found.groupdict().items() if v is not None}

    def handles(self, method: str) -> bool:
        """Return True if any layer runs for *method*."""
        return any(layer.handles(method) for layer in self.stack)

    def handlers_for(self, method: str) -> list[Handler]:
        return [layer.handler for layer in self.stack if layer.handles(method)]

    def add(self, method: str | None, *handlers: Handler) -> Route:
        """Append *handlers* to this route's stack for stage *method*."""
        if method is not None and method not in self.methods:
            msg = (
                f"Unknown stage {method!r} for route {self.pattern!r}. "
                "Register custom stages with handlers() first."
            )
            raise ConfigurationError(msg)
        for handler in handlers:
            if not callable(handler):
                msg = f"expected middleware handler to be callable, got {type(handler).__name__}."
                raise TypeError(msg)
            self.stack.append(Layer(method, handler))
        return self

    def all(self, *handlers: Handler) -> Route:
        """Register *handlers* for every stage."""
        return self.add(None, *handlers)

    def on_load(self, *handlers: Handler) -> Route:
        return self.add("onLoad", *handlers)

    def pre_compile(self, *handlers: Handler) -> Route:
        return self.add("preCompile", *handlers)

    def pre_layout(self, *handlers: Handler) -> Route:
        return self.add("preLayout", *handlers)

    def on_layout(self, *handlers: Handler) -> Route:
        return self.add("onLayout", *handlers)

    def post_layout(self, *handlers: Handler) -> Route:
        return self.add("postLayout", *handlers)

    def on_merge(self, *handlers: Handler) -> Route:
        return self.add("onMerge", *handlers)

    def post_compile(self, *handlers: Handler) -> Route:
        return self.add("postCompile", *handlers)

    def pre_render(self, *handlers: Handler) -> Route:
        return self.add("preRender", *handlers)

    def post_render(self, *handlers: Handler) -> Route:
        return self.add("postRender", *handlers)
