"""Layout composition: splice content through a chain of layouts.

Pure function over a layout stack (name -> view). The caller owns
dispatching lifecycle stages; this module only walks the chain, records
history and reports broken chains.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

from vellum.config import DEFAULT_LAYOUT_TAG
from vellum.errors import LayoutCycleError, LayoutNotRegistered
from vellum.layout.resolve import normalize_layout
from vellum.layout.types import LayoutResult, LayoutStep

if TYPE_CHECKING:
    from vellum.views.view import View

logger = logging.getLogger("vellum.layout")

type OnLayout = Callable[[LayoutStep, tuple[LayoutStep, ...]], None]


def find_layout(name: str, stack: Mapping[str, View]) -> tuple[str, View] | None:
    """Look up *name* in *stack*.

    Tries the exact key first, then any key whose file stem equals
    *name* (``"base"`` finds ``"base.html"`` or ``"layouts/base.html"``).
    Returns ``(key, layout)`` or ``None``.
    """
    if name in stack:
        return name, stack[name]
    for key, layout in stack.items():
        stem = os.path.splitext(os.path.basename(key))[0]
        if stem == name:
            return key, layout
    return None


def apply_layouts(
    content: str,
    name: str,
    stack: Mapping[str, View],
    *,
    tag: str = DEFAULT_LAYOUT_TAG,
    path: str | None = None,
    on_layout: OnLayout | None = None,
) -> LayoutResult:
    """Wrap *content* in layout *name* and each of its ancestor layouts.

    Args:
        content: Source of the view being composed.
        name: First (innermost) layout to apply.
        stack: Registered layouts keyed by name.
        tag: Regex matching the insertion point inside a layout.
        path: Path of the view, used in error messages.
        on_layout: Called after every substitution with the step and the
            history so far.

    Raises:
        LayoutNotRegistered: A layout in the chain is not in *stack*.
        LayoutCycleError: A layout was reached twice in one chain.
    """
    pattern = re.compile(tag)
    result = content
    history: list[LayoutStep] = []
    visited: list[str] = []
    current: str | None = name

    while current is not None:
        found = find_layout(current, stack)
        if found is None:
            raise LayoutNotRegistered(path, current)
        key, layout = found
        if key in visited:
            raise LayoutCycleError(path, key, tuple(visited))
        visited.append(key)

        before = result
        # Callable replacement: content must not be parsed for backrefs
        result = pattern.sub(lambda _m: before, layout.content or "")
        step = LayoutStep(layout=key, before=before, after=result)
        history.append(step)
        logger.debug("applied layout %r to %r (depth %d)", key, path, len(history))

        if on_layout is not None:
            on_layout(step, tuple(history))
        current = normalize_layout(layout.layout)

    return LayoutResult(result=result, history=tuple(history))
