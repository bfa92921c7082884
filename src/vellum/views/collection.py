"""Collection: a keyed store of items with bulk loading.

Items are stored under a key computed by the collection's rename
function. ``add_item`` emits an ``addItem`` event and then drains
``queue``, so items enqueued by listeners are stored before it returns.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any, Self

from vellum._internal.types import MISSING, RenameKey
from vellum.events import EventEmitter
from vellum.views.item import Item

logger = logging.getLogger("vellum.collection")

type ItemPlugin = Callable[[Item], Any]


def _identity(value: Any) -> Any:
    return value


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


class Collection:
    """An ordered, keyed mapping of path -> Item.

    Usage::

        collection = Collection(rename_key=lambda key: key.rsplit("/", 1)[-1])
        collection.add_item("a/b/c.html", {"content": "..."})
        collection.get_item("c.html")          # stored key
        collection.get_item("a/b/c.html")      # original key

    Args:
        items: Optional initial items: a mapping, a sequence of records
            with ``path`` keys, or another collection.
        rename_key: Computes the storage key from the given key.
        item_class: Class used to construct items from plain records.
        events: Event emitter; a new one is created when omitted.
        **options: Stored in the ``options`` bag.
    """

    item_class: type[Item] = Item

    def __init__(
        self,
        items: Mapping[str, Any] | Sequence[Any] | Collection | None = None,
        *,
        rename_key: RenameKey | None = None,
        item_class: type[Item] | None = None,
        events: EventEmitter | None = None,
        **options: Any,
    ) -> None:
        self.events = events or EventEmitter()
        self.options: dict[str, Any] = dict(options)
        if item_class is not None:
            self.item_class = item_class
        self._rename_key = rename_key
        self._item_plugins: list[ItemPlugin] = []
        self._loaded = False
        self.items: dict[str, Item] = {}
        self.queue: deque[Any] = deque()

        if isinstance(items, Collection):
            self.options = {**items.options, **self.options}
            self.add_items(dict(items.items))
        elif _is_sequence(items):
            self.add_list(items)  # type: ignore[arg-type]
        elif items is not None:
            self.add_items(items)  # type: ignore[arg-type]

    # -- Options / state --

    def option(self, key: str, value: Any = MISSING) -> Any:
        """Get (one argument) or set (two arguments) an option."""
        if value is MISSING:
            return self.options.get(key)
        self.options[key] = value
        return self

    @property
    def loaded(self) -> bool:
        """True once the collection was marked as fully loaded.

        Bulk-add operations become no-ops after that.
        """
        return self._loaded

    @loaded.setter
    def loaded(self, value: bool) -> None:
        if self._loaded and not value:
            msg = "a loaded collection cannot be marked as not loaded."
            raise ValueError(msg)
        self._loaded = bool(value)

    @property
    def count(self) -> int:
        return len(self.items)

    def rename_key(self, key: str) -> str:
        """Compute the storage key for *key*."""
        if self._rename_key is None:
            return key
        return self._rename_key(key)

    # -- Plugins --

    def use(self, plugin: Callable[[Self], Any]) -> Self:
        """Run *plugin* against the collection.

        If the plugin returns a callable, that callable is applied to
        every item stored from now on.
        """
        fn = plugin(self)
        if callable(fn):
            self._item_plugins.append(fn)
        return self

    def run(self, item: Item) -> Item:
        """Apply the collection's item plugins to *item*."""
        for plugin in self._item_plugins:
            item.use(plugin)
        return item

    # -- Items --

    def item(self, key: Any, value: Any = MISSING) -> Item:
        """Normalize ``(key, value)`` into an item of ``item_class``.

        Accepts ``item(key, record)``, ``item(record)`` where the record
        has a ``path``, or an existing item, which is reused unchanged.
        """
        if value is MISSING and isinstance(key, (Item, Mapping)):
            value = key
            key = value.path if isinstance(value, Item) else value.get("path")
        if value is MISSING or value is None:
            value = {}

        if isinstance(value, self.item_class):
            item = value
        elif isinstance(value, (Item, Mapping)):
            item = self.item_class(value)
        else:
            msg = "expected value to be a mapping."
            raise TypeError(msg)

        if key is None:
            key = item.path
        if not isinstance(key, str):
            msg = "expected item key to be a string."
            raise TypeError(msg)
        if item.path is None:
            item.path = key
        item.key = self.rename_key(key)
        return item

    def set_item(self, key: Any, value: Any = MISSING) -> Item:
        """Store an item without emitting events or draining the queue."""
        item = self.item(key, value)
        logger.debug("setting item %r", item.key)
        if callable(getattr(item, "use", None)):
            self.run(item)
        self.items[item.key] = item  # type: ignore[index]
        return item

    def add_item(self, key: Any, value: Any = MISSING) -> Item:
        """Store an item, emit ``addItem`` and drain the pending queue.

        Listeners of ``addItem`` may append raw records (or ``(key, value)``
        tuples) to ``queue``; they are stored, in order, before this
        method returns.
        """
        args = (key,) if value is MISSING else (key, value)
        logger.debug("adding item %r", key if isinstance(key, str) else getattr(key, "path", key))
        self.events.emit("addItem", args)

        item = self.set_item(key, value)
        while self.queue:
            entry = self.queue.popleft()
            if isinstance(entry, tuple):
                self.set_item(*entry)
            else:
                self.set_item(entry)
        return item

    def enqueue(self, key: Any, value: Any = MISSING) -> None:
        """Queue an item to be stored by the ``add_item`` call in progress."""
        self.queue.append(key if value is MISSING else (key, value))

    def get_item(self, key: str) -> Item | None:
        """Return the item stored under *key* or under ``rename_key(key)``."""
        item = self.items.get(key)
        if item is None:
            item = self.items.get(self.rename_key(key))
        return item

    def delete_item(self, item: str | Item) -> Self:
        """Remove an item by key or instance. Missing keys are ignored."""
        if isinstance(item, str):
            found = self.get_item(item)
            if found is None:
                return self
            item = found
        self.items.pop(item.key, None)  # type: ignore[arg-type]
        return self

    def add_items(self, items: Mapping[str, Any] | Sequence[Any]) -> Self:
        """Add every ``key: value`` pair of *items*.

        Sequences are delegated to ``add_list``. No-op once ``loaded``.
        """
        if _is_sequence(items):
            return self.add_list(items)  # type: ignore[arg-type]
        self.events.emit("addItems", items)
        if self._loaded:
            return self
        if not isinstance(items, Mapping):
            msg = "expected items to be a mapping or a sequence."
            raise TypeError(msg)
        for key, value in items.items():
            self.add_item(key, value)
        return self

    def add_list(
        self,
        items: Sequence[Any],
        fn: Callable[[Any], Any] | None = None,
    ) -> Self:
        """Add a sequence of records, each keyed by its ``path``.

        *fn* transforms each record before it is added. No-op once
        ``loaded``.

        Raises:
            TypeError: *items* is not a sequence.
        """
        self.events.emit("addList", items)
        if self._loaded:
            return self
        if not _is_sequence(items):
            msg = "expected list to be a sequence."
            raise TypeError(msg)

        transform = fn if callable(fn) else _identity
        for record in items:
            record = transform(record)
            if isinstance(record, Item):
                path = record.path
            elif isinstance(record, Mapping):
                path = record.get("path")
            else:
                msg = "expected list entries to be mappings or items."
                raise TypeError(msg)
            self.add_item(path, record)
        return self

    # -- Container protocol --

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Item]:
        return iter(list(self.items.values()))

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get_item(key) is not None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} items={len(self.items)}>"
