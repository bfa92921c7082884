"""Layouts: resolve a view's layout chain and splice content into it.

Composition is textual and happens before template compilation: each
layout's insertion point is replaced with the content produced so far,
walking outward until a layout with no parent layout is reached.
"""

from vellum.layout.compose import apply_layouts, find_layout
from vellum.layout.resolve import normalize_layout, resolve_layout
from vellum.layout.types import LayoutResult, LayoutStep

__all__ = [
    "LayoutResult",
    "LayoutStep",
    "apply_layouts",
    "find_layout",
    "normalize_layout",
    "resolve_layout",
]
