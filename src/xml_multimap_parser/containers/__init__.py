"""Container factory producing the outer mapping and per-key value groups."""

from .factory import (
    OrderedSet,
    SortedKeyDict,
    add_value,
    new_collection,
    new_map,
)

__all__ = [
    "OrderedSet",
    "SortedKeyDict",
    "add_value",
    "new_collection",
    "new_map",
]
