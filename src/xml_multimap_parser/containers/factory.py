"""Container factory for multimap results.

Maps each ``MapKind`` and ``CollectionKind`` to a freshly constructed, empty
container with the matching ordering and uniqueness behaviour:

    HASHMAP         -> dict
    LINKED_HASHMAP  -> collections.OrderedDict
    TREEMAP         -> SortedKeyDict
    LIST            -> list
    SET             -> set
    ORDERED_SET     -> OrderedSet
"""

from bisect import bisect_left, insort
from collections import OrderedDict
from collections.abc import MutableMapping, MutableSet, Set
from typing import Any, Dict, Iterable, Iterator, List, Optional

from xml_multimap_parser.shared.config import CollectionKind, MapKind


class SortedKeyDict(MutableMapping):
    """Mapping that iterates in ascending key order.

    Keys must be mutually comparable; inserting a key that cannot be ordered
    against the existing ones raises ``TypeError`` and leaves the mapping
    unchanged.
    """

    def __init__(self, items: Optional[Iterable[Any]] = None) -> None:
        self._data: Dict[Any, Any] = {}
        self._keys: List[Any] = []
        if items is not None:
            self.update(items)

    def __getitem__(self, key: Any) -> Any:
        return self._data[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        if key not in self._data:
            insort(self._keys, key)
        self._data[key] = value

    def __delitem__(self, key: Any) -> None:
        del self._data[key]
        del self._keys[bisect_left(self._keys, key)]

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._keys))

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def first_key(self) -> Any:
        if not self._keys:
            raise KeyError("first_key(): mapping is empty")
        return self._keys[0]

    def last_key(self) -> Any:
        if not self._keys:
            raise KeyError("last_key(): mapping is empty")
        return self._keys[-1]

    def __repr__(self) -> str:
        body = ", ".join(f"{key!r}: {self._data[key]!r}" for key in self._keys)
        return f"{type(self).__name__}({{{body}}})"


class OrderedSet(MutableSet):
    """Set that remembers insertion order; re-adding a value is a no-op."""

    def __init__(self, values: Optional[Iterable[Any]] = None) -> None:
        self._items: Dict[Any, None] = {}
        if values is not None:
            for value in values:
                self.add(value)

    def __contains__(self, value: object) -> bool:
        return value in self._items

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def add(self, value: Any) -> None:
        self._items[value] = None

    def discard(self, value: Any) -> None:
        self._items.pop(value, None)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, OrderedSet):
            return list(self) == list(other)
        if isinstance(other, Set):
            return set(self._items) == set(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._items)!r})"


def new_map(kind: MapKind) -> MutableMapping:
    """Create an empty mapping for ``kind``."""
    if kind is MapKind.LINKED_HASHMAP:
        return OrderedDict()
    if kind is MapKind.TREEMAP:
        return SortedKeyDict()
    if kind is MapKind.HASHMAP:
        return {}
    raise ValueError(f"Unsupported map kind: {kind!r}")


def new_collection(kind: CollectionKind) -> Any:
    """Create an empty value group for ``kind``."""
    if kind is CollectionKind.SET:
        return set()
    if kind is CollectionKind.ORDERED_SET:
        return OrderedSet()
    if kind is CollectionKind.LIST:
        return []
    raise ValueError(f"Unsupported collection kind: {kind!r}")


def add_value(group: Any, value: Any) -> None:
    """Append to a list group, or add to a set group (dropping duplicates)."""
    if isinstance(group, list):
        group.append(value)
    else:
        group.add(value)

