"""Type-override resolution for the map and collection axes.

Precedence, highest first:

1. explicit caller override (``ParserConfig.type_override``)
2. kind declared on the root tag (``type`` / ``collection`` attributes)
3. built-in default (``HASHMAP`` / ``LIST``)

Each axis is resolved independently.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from xml_multimap_parser.shared.config import (
    DEFAULT_COLLECTION_KIND,
    DEFAULT_MAP_KIND,
    CollectionKind,
    MapKind,
    TypeOverride,
)


class KindSource(Enum):
    """Where a resolved kind came from."""

    OVERRIDE = auto()
    DOCUMENT = auto()
    DEFAULT = auto()


@dataclass(frozen=True)
class ResolvedKinds:
    """Container kinds fixed for the rest of a parse."""

    map_kind: MapKind
    collection_kind: CollectionKind
    map_source: KindSource = KindSource.DEFAULT
    collection_source: KindSource = KindSource.DEFAULT


def resolve_kinds(
    override: TypeOverride,
    declared_map: Optional[MapKind] = None,
    declared_collection: Optional[CollectionKind] = None,
) -> ResolvedKinds:
    """Apply override > document > default on both axes."""
    if override.map_kind is not None:
        map_kind, map_source = override.map_kind, KindSource.OVERRIDE
    elif declared_map is not None:
        map_kind, map_source = declared_map, KindSource.DOCUMENT
    else:
        map_kind, map_source = DEFAULT_MAP_KIND, KindSource.DEFAULT

    if override.collection_kind is not None:
        collection_kind = override.collection_kind
        collection_source = KindSource.OVERRIDE
    elif declared_collection is not None:
        collection_kind, collection_source = declared_collection, KindSource.DOCUMENT
    else:
        collection_kind = DEFAULT_COLLECTION_KIND
        collection_source = KindSource.DEFAULT

    return ResolvedKinds(map_kind, collection_kind, map_source, collection_source)
