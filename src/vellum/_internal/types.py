"""Shared type aliases used across vellum modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Sentinel for "argument not passed" where None is a meaningful value
MISSING: Any = object()

# Continuation passed to middleware: next(), next(err) or next("route")
Next: TypeAlias = Callable[..., None]

# Middleware handler: handler(item, next)
Handler: TypeAlias = Callable[..., Any]

# Dispatch completion callback: callback(err, item)
Callback: TypeAlias = Callable[..., Any]

# Storage key rename function
RenameKey: TypeAlias = Callable[[str], str]
