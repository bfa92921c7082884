"""Vellum exception hierarchy.

Shared across collections, the router, the layout composer and the
render pipeline so every module raises and catches the same types.
"""


class VellumError(Exception):
    """Base for all vellum-specific errors."""


class ConfigurationError(VellumError):
    """Raised when routes, stages or options are configured incorrectly.

    Typically raised while registering handlers, before any item is
    dispatched.
    """


class DispatchError(VellumError):
    """A middleware failure annotated with where it happened.

    Handler exceptions are normally annotated in place. When the original
    exception refuses new attributes (slotted or frozen), it is wrapped in
    a ``DispatchError`` and chained as ``__cause__``.

    The duplicate-report guard is the public ``handled`` flag rather than a
    private ``_handled`` attribute; outer dispatches check it with
    ``getattr(err, "handled", False)``.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason
        self.source = ""
        self.method: str | None = None
        self.handled = False


class LayoutError(VellumError):
    """Base for per-view layout failures.

    Carries the path of the view being composed and the layout name that
    caused the failure.
    """

    def __init__(self, path: str | None, layout: str | None, detail: str = "") -> None:
        self.path = path
        self.layout = layout
        self.detail = detail
        super().__init__(detail or f"layout error in {path!r}")


class LayoutNotRegistered(LayoutError):  # noqa: N818
    """The requested layout does not exist in any layout collection."""

    def __init__(self, path: str | None, layout: str | None) -> None:
        super().__init__(
            path,
            layout,
            f"layouts: layout {layout!r} is not registered (applying to {path!r})",
        )


class LayoutCycleError(LayoutError):
    """A layout name was visited twice while composing one view."""

    def __init__(self, path: str | None, layout: str | None, chain: tuple[str, ...] = ()) -> None:
        self.chain = chain
        trail = " -> ".join((*chain, layout or "?"))
        super().__init__(
            path,
            layout,
            f"layouts: cycle detected at {layout!r} while applying to {path!r} ({trail})",
        )


class LayoutNotApplied(LayoutError):  # noqa: N818
    """Composition finished but the content did not change.

    Means the layout has no insertion point, which is a broken template
    rather than a missing one.
    """

    def __init__(self, path: str | None, layout: str | None) -> None:
        super().__init__(
            path,
            layout,
            f"layouts: layout {layout!r} was not applied to {path!r} "
            "(no insertion point found)",
        )


class HelperError(VellumError):
    """An async helper failed while its placeholder was being resolved."""


class RenderError(VellumError):
    """Raised when a view cannot be found or rendered."""
