"""Views: content items, renderable views and the collections holding them."""

from vellum.views.collection import Collection
from vellum.views.item import Item
from vellum.views.view import VIEW_TYPES, View
from vellum.views.view_collection import Views, normalize_view_types

__all__ = [
    "VIEW_TYPES",
    "Collection",
    "Item",
    "View",
    "Views",
    "normalize_view_types",
]
