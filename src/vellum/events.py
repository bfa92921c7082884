"""Synchronous event emitter.

Every top-level object owns one ``EventEmitter``. Listeners run inline,
in subscription order, on the thread that calls ``emit()``, so a listener
may mutate the emitted item before the emitter returns.

Thread safety:
    The listener table is protected by a ``threading.Lock``; ``emit()``
    iterates over a snapshot so listeners may subscribe or unsubscribe
    while an event is in flight.
"""

import threading
from collections.abc import Callable
from typing import Any

type Listener = Callable[..., Any]


class EventEmitter:
    """Named-event pub/sub with ``on`` / ``once`` / ``off`` / ``emit``.

    Usage::

        events = EventEmitter()
        events.on("view", lambda view: view.data.setdefault("seen", True))
        events.emit("view", view)
    """

    __slots__ = ("_listeners", "_lock")

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._lock = threading.Lock()

    def on(self, name: str, listener: Listener) -> Listener:
        """Subscribe *listener* to *name*. Returns the listener."""
        with self._lock:
            self._listeners.setdefault(name, []).append(listener)
        return listener

    def once(self, name: str, listener: Listener) -> Listener:
        """Subscribe *listener* for a single emission of *name*."""

        def wrapper(*args: Any) -> Any:
            self.off(name, wrapper)
            return listener(*args)

        self.on(name, wrapper)
        return wrapper

    def off(self, name: str | None = None, listener: Listener | None = None) -> None:
        """Unsubscribe listeners.

        With no arguments every listener is removed; with only *name*
        every listener for that event is removed.
        """
        with self._lock:
            if name is None:
                self._listeners.clear()
                return
            if listener is None:
                self._listeners.pop(name, None)
                return
            listeners = self._listeners.get(name, [])
            if listener in listeners:
                listeners.remove(listener)

    def emit(self, name: str, *args: Any) -> bool:
        """Call every listener of *name* with *args*.

        Returns ``True`` if the event had listeners.
        """
        with self._lock:
            listeners = list(self._listeners.get(name, ()))
        for listener in listeners:
            listener(*args)
        return bool(listeners)

    def listeners(self, name: str) -> list[Listener]:
        """Return a copy of the listeners subscribed to *name*."""
        with self._lock:
            return list(self._listeners.get(name, ()))

    def has_listeners(self, name: str) -> bool:
        with self._lock:
            return bool(self._listeners.get(name))
