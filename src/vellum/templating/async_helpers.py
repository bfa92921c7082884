"""Async helpers: deferred helper calls resolved after rendering.

Templates render synchronously, so an async helper cannot return its
value inline. Instead each call returns a unique placeholder token and is
recorded; once the template has rendered, every recorded call is awaited
concurrently and its token replaced with the result.

Pipeline::

    calls = AsyncHelperCalls()
    context = {**calls.bind(async_helpers), **view_context}
    html = template.render(context)       # tokens in place of results
    html = await calls.resolve(html)      # tokens replaced
"""

from __future__ import annotations

import inspect
import itertools
import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import anyio

from vellum.errors import HelperError

logger = logging.getLogger("vellum.helpers")


@dataclass(frozen=True, slots=True)
class PendingCall:
    """One recorded async helper invocation."""

    name: str
    fn: Callable[..., Any]
    args: tuple[Any, ...]
    kwargs: dict[str, Any]


class AsyncHelperCalls:
    """Records async helper calls made during one render.

    Tokens embed a per-render prefix so output from one render never
    resolves against another render's calls.
    """

    __slots__ = ("_calls", "_counter", "_prefix")

    def __init__(self) -> None:
        self._prefix = uuid.uuid4().hex[:12]
        self._counter = itertools.count()
        self._calls: dict[str, PendingCall] = {}

    def proxy(self, name: str, fn: Callable[..., Any]) -> Callable[..., str]:
        """Wrap *fn* so calling it records the call and returns a token."""

        def call(*args: Any, **kwargs: Any) -> str:
            token = f"__vellum_async_{self._prefix}_{next(self._counter)}__"
            self._calls[token] = PendingCall(name, fn, args, kwargs)
            return token

        call.__name__ = name
        return call

    def bind(self, helpers: Mapping[str, Callable[..., Any]]) -> dict[str, Callable[..., str]]:
        """Return proxies for every helper in *helpers*."""
        return {name: self.proxy(name, fn) for name, fn in helpers.items()}

    @property
    def pending(self) -> dict[str, PendingCall]:
        return dict(self._calls)

    def __len__(self) -> int:
        return len(self._calls)

    async def resolve(self, text: str) -> str:
        """Await every recorded call and substitute the results into *text*.

        Raises ``HelperError`` if any helper fails.
        """
        if not self._calls:
            return text

        results: dict[str, Any] = {}

        async def _resolve(token: str, call: PendingCall) -> None:
            result = call.fn(*call.args, **call.kwargs)
            if inspect.isawaitable(result):
                result = await result
            results[token] = result

        try:
            async with anyio.create_task_group() as tg:
                for token, call in self._calls.items():
                    tg.start_soon(_resolve, token, call)
        except Exception as exc:
            logger.exception("error resolving %d async helper call(s)", len(self._calls))
            names = ", ".join(sorted({call.name for call in self._calls.values()}))
            msg = f"async helpers failed to resolve: {names}"
            raise HelperError(msg) from exc

        for token, value in results.items():
            text = text.replace(token, "" if value is None else str(value))
        return text
