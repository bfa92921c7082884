"""Helper registries: name -> function tables used while rendering.

Mirrors the Router + Route split: registration validates eagerly so a
bad helper fails where it is registered, not halfway through a render.
"""

from collections.abc import Callable, Iterator
from typing import Any

type Helper = Callable[..., Any]


class HelperRegistry:
    """A mutable name -> helper mapping.

    Usage::

        helpers = HelperRegistry()
        helpers.set("upper", str.upper)
        helpers.get("upper")("a")    # "A"
        helpers.get("missing")       # None
    """

    __slots__ = ("_helpers", "kind")

    def __init__(self, kind: str = "sync") -> None:
        self.kind = kind
        self._helpers: dict[str, Helper] = {}

    def get(self, name: str) -> Helper | None:
        """Look up a helper by name. Returns ``None`` if not found."""
        return self._helpers.get(name)

    def set(self, name: str, fn: Helper) -> None:
        """Register *fn* under *name*, replacing any previous helper.

        Raises ``TypeError`` if *fn* is not callable.
        """
        if not callable(fn):
            msg = f"expected {self.kind} helper {name!r} to be a function."
            raise TypeError(msg)
        self._helpers[name] = fn

    def remove(self, name: str) -> None:
        self._helpers.pop(name, None)

    def as_dict(self) -> dict[str, Helper]:
        """Return a copy of the registered helpers."""
        return dict(self._helpers)

    def __len__(self) -> int:
        return len(self._helpers)

    def __contains__(self, name: object) -> bool:
        return name in self._helpers

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._helpers))

    def __repr__(self) -> str:
        return f"<HelperRegistry kind={self.kind!r} helpers={sorted(self._helpers)!r}>"
