"""Vellum: view collections, stage middleware and layout composition.

Load views into named collections, run them through path-routed
lifecycle middleware, wrap them in layout chains and render them with
kida.

Basic usage::

    from vellum import Templates

    app = Templates()
    app.create("pages")
    app.create("layouts", view_type="layout")

    app.layouts.add_view("base", {"content": "<body>{{ content }}</body>"})
    app.pages.add_view("home.html", {"content": "<h1>{{ title }}</h1>", "layout": "base"})

    app.render("home.html", {"title": "Home"}, lambda err, view: print(view.content))
"""

__version__ = "0.1.0"
__all__ = [
    "Collection",
    "ConfigurationError",
    "DispatchError",
    "EventEmitter",
    "HelperError",
    "Item",
    "LayoutCycleError",
    "LayoutError",
    "LayoutNotApplied",
    "LayoutNotRegistered",
    "RenderError",
    "Route",
    "Router",
    "Templates",
    "TemplatesConfig",
    "VellumError",
    "View",
    "Views",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import vellum`` cheap until the engine is actually needed.
    """
    if name == "Templates":
        from vellum.app import Templates

        return Templates

    if name == "TemplatesConfig":
        from vellum.config import TemplatesConfig

        return TemplatesConfig

    if name == "EventEmitter":
        from vellum.events import EventEmitter

        return EventEmitter

    if name in ("Item", "View", "Collection", "Views"):
        from vellum import views as _views

        return getattr(_views, name)

    if name in ("Route", "Router"):
        from vellum import routing as _routing

        return getattr(_routing, name)

    if name in (
        "VellumError",
        "ConfigurationError",
        "DispatchError",
        "HelperError",
        "LayoutCycleError",
        "LayoutError",
        "LayoutNotApplied",
        "LayoutNotRegistered",
        "RenderError",
    ):
        from vellum import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
