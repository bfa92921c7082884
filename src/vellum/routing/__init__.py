"""Routing: ordered, path-matched middleware stacks per lifecycle stage.

Routes are registered during setup and dispatched in registration order
every time an item enters a stage.
"""

from vellum.routing.dispatch import Routes, annotate_error
from vellum.routing.route import STAGES, Layer, Route, RouteMatch, compile_pattern
from vellum.routing.router import Router

__all__ = [
    "STAGES",
    "Layer",
    "Route",
    "RouteMatch",
    "Router",
    "Routes",
    "annotate_error",
    "compile_pattern",
]
