"""Kida environment setup and the compile/render contract.

The engine compiles a view's (already laid out) source into a kida
template and renders it with a context. Async helper placeholders are
resolved after the synchronous render.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

import anyio
from kida import Environment

from vellum.config import TemplatesConfig
from vellum.templating.async_helpers import AsyncHelperCalls


def create_environment(config: TemplatesConfig) -> Environment:
    """Create a kida Environment from templates configuration.

    Views are compiled from strings, so no loader is configured.
    """
    return Environment(
        autoescape=config.autoescape,
        trim_blocks=config.trim_blocks,
        lstrip_blocks=config.lstrip_blocks,
    )


class Engine:
    """Compile and render view source with kida.

    Usage::

        engine = Engine()
        fn = engine.compile("<h1>{{ title }}</h1>")
        engine.render(fn, {"title": "Home"}, lambda err, html: ...)
    """

    __slots__ = ("_env",)

    def __init__(
        self,
        config: TemplatesConfig | None = None,
        *,
        env: Environment | None = None,
    ) -> None:
        self._env = env or create_environment(config or TemplatesConfig())

    @property
    def env(self) -> Environment:
        return self._env

    def compile(self, source: str, settings: Mapping[str, Any] | None = None) -> Any:
        """Compile *source* into a render function.

        *settings* are per-view overrides; kida options are fixed by the
        environment, so they are not consulted here.
        """
        return self._env.from_string(source)

    def render(
        self,
        fn: Any,
        context: Mapping[str, Any],
        callback: Callable[..., Any],
        *,
        async_helpers: Mapping[str, Callable[..., Any]] | None = None,
    ) -> None:
        """Render *fn* and call ``callback(err, html)``.

        Async helper calls are resolved on a fresh event loop, so this
        must not be called from inside a running loop; use
        ``render_async`` there.
        """
        calls = AsyncHelperCalls()
        try:
            html = fn.render({**calls.bind(async_helpers or {}), **context})
            if len(calls):
                html = anyio.run(calls.resolve, html)
        except Exception as exc:
            callback(exc, None)
            return
        callback(None, html)

    async def render_async(
        self,
        fn: Any,
        context: Mapping[str, Any],
        *,
        async_helpers: Mapping[str, Callable[..., Any]] | None = None,
    ) -> str:
        """Render *fn* and await async helper results."""
        calls = AsyncHelperCalls()
        html = fn.render({**calls.bind(async_helpers or {}), **context})
        return await calls.resolve(html)
