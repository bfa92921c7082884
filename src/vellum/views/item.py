"""Item: a single content record flowing through the pipeline.

An item carries a ``path``, a byte buffer of ``contents`` (``content`` is
the decoded string view of the same buffer), two metadata namespaces
(``data`` for parsed front-matter, ``locals`` for caller overrides) and a
mutable ``options`` bag that the dispatcher and layout composer annotate.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from vellum._internal.types import MISSING

# Fields consumed by the constructor; everything else becomes an attribute
_RESERVED = frozenset({"path", "content", "contents", "data", "locals", "options", "key"})


def to_bytes(value: str | bytes | bytearray | None) -> bytes | None:
    """Normalize template source to a byte buffer."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


class Item:
    """A content record: path, contents, metadata and per-item options.

    Accepts a plain mapping, another ``Item``, or keyword arguments::

        item = Item({"path": "a.html", "content": "<p>hi</p>"})
        item = Item(path="a.html", contents=b"<p>hi</p>", data={"title": "A"})

    Unknown keys become plain attributes, so arbitrary metadata survives
    the round trip through a collection.
    """

    def __init__(self, item: Mapping[str, Any] | Item | None = None, **fields: Any) -> None:
        if isinstance(item, Item):
            source: dict[str, Any] = item.to_dict()
        elif item is None:
            source = {}
        elif isinstance(item, Mapping):
            source = dict(item)
        else:
            msg = "expected item to be a mapping or an Item."
            raise TypeError(msg)
        source.update(fields)

        self.path: str | None = source.get("path")
        self.key: str | None = source.get("key", self.path)
        self.data: dict[str, Any] = dict(source.get("data") or {})
        self.locals: dict[str, Any] = dict(source.get("locals") or {})
        self.options: dict[str, Any] = dict(source.get("options") or {})
        self.params: dict[str, str] = {}
        self._contents: bytes | None = None

        if source.get("contents") is not None:
            self.contents = source["contents"]
        elif source.get("content") is not None:
            self.content = source["content"]

        for name, value in source.items():
            if name not in _RESERVED:
                setattr(self, name, value)

    # -- Content --

    @property
    def contents(self) -> bytes | None:
        """Raw template source as bytes."""
        return self._contents

    @contents.setter
    def contents(self, value: str | bytes | bytearray | None) -> None:
        self._contents = to_bytes(value)

    @property
    def content(self) -> str | None:
        """Template source decoded as UTF-8."""
        if self._contents is None:
            return None
        return self._contents.decode("utf-8")

    @content.setter
    def content(self, value: str | bytes | None) -> None:
        self._contents = to_bytes(value)

    # -- Metadata --

    def get(self, name: str, default: Any = None) -> Any:
        """Return an arbitrary attribute, or *default*."""
        return getattr(self, name, default)

    def set(self, name: str, value: Any) -> Item:
        """Set an arbitrary attribute. Returns the item for chaining."""
        setattr(self, name, value)
        return self

    def define(self, name: str, value: Any) -> Item:
        """Attach a computed field that ``to_dict()`` does not export."""
        hidden = self.__dict__.setdefault("_defined", set())
        hidden.add(name)
        setattr(self, name, value)
        return self

    def option(self, key: str, value: Any = MISSING) -> Any:
        """Get (one argument) or set (two arguments) an option."""
        if value is MISSING:
            return self.options.get(key)
        self.options[key] = value
        return self

    # -- Plugins --

    def use(self, plugin: Callable[[Item], Any]) -> Item:
        """Run *plugin* against this item. Returns the item for chaining."""
        plugin(self)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Export the item's public fields as a plain mapping."""
        hidden = self.__dict__.get("_defined", set())
        result: dict[str, Any] = {
            name: value
            for name, value in vars(self).items()
            if not name.startswith("_") and name not in hidden
        }
        result["contents"] = self._contents
        result["options"] = dict(self.options)
        return result

    def __repr__(self) -> str:
        size = len(self._contents) if self._contents is not None else 0
        return f"<{type(self).__name__} path={self.path!r} contents=<{size} bytes>>"
