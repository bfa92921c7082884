"""Default layout resolver.

Consulted the first time a view's ``layout`` is read and no layout was
set explicitly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vellum.views.view import View

# String values that explicitly mean "no layout"
_NO_LAYOUT = frozenset({"", "none", "false", "null", "nil"})


def normalize_layout(value: Any) -> str | None:
    """Turn a raw layout reference into a layout name or ``None``."""
    if value is None or value is False:
        return None
    name = str(value).strip()
    if name.lower() in _NO_LAYOUT:
        return None
    return name


def resolve_layout(view: View) -> str | None:
    """Find the layout name for *view*.

    Resolution order:
        1. ``layout`` in front-matter (``view.data``).
        2. ``layout`` in ``view.locals``.
        3. ``layout`` in ``view.options``.
    """
    for source in (view.data, view.locals, view.options):
        if "layout" in source:
            return normalize_layout(source["layout"])
    return None
