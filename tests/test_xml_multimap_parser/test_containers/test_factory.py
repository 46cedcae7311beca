"""Tests for the container factory."""

from collections import OrderedDict

import pytest

from xml_multimap_parser.containers.factory import (
    OrderedSet,
    SortedKeyDict,
    add_value,
    new_collection,
    new_map,
)
from xml_multimap_parser.shared.config import CollectionKind, MapKind


class TestNewMap:
    """Test map construction per kind."""

    def test_kinds(self):
        """Test each map kind yields an empty container of the right class."""
        assert type(new_map(MapKind.HASHMAP)) is dict
        assert isinstance(new_map(MapKind.LINKED_HASHMAP), OrderedDict)
        assert isinstance(new_map(MapKind.TREEMAP), SortedKeyDict)
        for kind in MapKind:
            assert len(new_map(kind)) == 0

    def test_fresh_instances(self):
        """Test every call returns a new container."""
        assert new_map(MapKind.HASHMAP) is not new_map(MapKind.HASHMAP)

class TestNewCollection:
    """Test value group construction per kind."""

    def test_kinds(self):
        """Test each collection kind yields an empty group of the right class."""
        assert new_collection(CollectionKind.LIST) == []
        assert new_collection(CollectionKind.SET) == set()
        assert isinstance(new_collection(CollectionKind.ORDERED_SET), OrderedSet)
        for kind in CollectionKind:
            assert len(new_collection(kind)) == 0

    def test_add_value_semantics(self):
        """Test duplicates are kept in lists and dropped in sets."""
        group_list = new_collection(CollectionKind.LIST)
        group_set = new_collection(CollectionKind.SET)
        group_ordered = new_collection(CollectionKind.ORDERED_SET)
        for value in ("b", "a", "b"):
            add_value(group_list, value)
            add_value(group_set, value)
            add_value(group_ordered, value)

        assert group_list == ["b", "a", "b"]
        assert group_set == {"a", "b"}
        assert list(group_ordered) == ["b", "a"]


class TestSortedKeyDict:
    """Test the key-ordered mapping."""

    def test_iterates_in_key_order(self):
        """Test ascending key iteration regardless of insertion order."""
        mapping = SortedKeyDict()
        for key in (3, 1, 2):
            mapping[key] = str(key)

        assert list(mapping) == [1, 2, 3]
        assert list(mapping.values()) == ["1", "2", "3"]
        assert mapping.first_key() == 1
        assert mapping.last_key() == 3

    def test_replace_and_delete(self):
        """Test overwriting keeps one key and deletion removes it from the order."""
        mapping = SortedKeyDict([("b", 1), ("a", 2)])
        mapping["b"] = 3
        del mapping["a"]

        assert list(mapping.items()) == [("b", 3)]
        assert "a" not in mapping
        with pytest.raises(KeyError):
            mapping["a"]

    def test_incomparable_key_leaves_mapping_unchanged(self):
        """Test a key that cannot be ordered raises TypeError."""
        mapping = SortedKeyDict({1: "one"})

        with pytest.raises(TypeError):
            mapping["x"] = "ex"
        assert dict(mapping) == {1: "one"}

    def test_empty_first_key(self):
        """Test first/last key on an empty mapping."""
        with pytest.raises(KeyError):
            SortedKeyDict().first_key()
        with pytest.raises(KeyError):
            SortedKeyDict().last_key()

    def test_equality_and_repr(self):
        """Test mapping equality and representation."""
        mapping = SortedKeyDict({2: ["b"], 1: ["a"]})

        assert mapping == {1: ["a"], 2: ["b"]}
        assert repr(mapping) == "SortedKeyDict({1: ['a'], 2: ['b']})"


class TestOrderedSet:
    """Test the insertion-ordered set."""

    def test_order_and_uniqueness(self):
        """Test re-adding keeps the first position."""
        values = OrderedSet(["c", "a", "c", "b"])

        assert list(values) == ["c", "a", "b"]
        assert len(values) == 3
        assert "a" in values

    def test_discard(self):
        """Test discarding present and missing values."""
        values = OrderedSet([1, 2])
        values.discard(1)
        values.discard(5)

        assert list(values) == [2]

    def test_equality(self):
        """Test equality is order-sensitive between ordered sets only."""
        assert OrderedSet([1, 2]) == OrderedSet([1, 2])
        assert OrderedSet([1, 2]) != OrderedSet([2, 1])
        assert OrderedSet([1, 2]) == {2, 1}
        assert repr(OrderedSet([1, 2])) == "OrderedSet([1, 2])"

    def test_unhashable(self):
        """Test ordered sets are mutable and unhashable."""
        with pytest.raises(TypeError):
            hash(OrderedSet())
