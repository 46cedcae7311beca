"""Configuration classes for multimap parsing.

This module provides the container-kind enumerations, the explicit type
override captured from the caller, and the immutable ``ParserConfig`` that a
parse consumes. Every ``with_*`` method returns a new configuration; none of
them mutate the receiver.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from xml_multimap_parser.conversion.conversions import (
    Conversion,
    available_conversions,
    conversion_name,
    get_conversion,
    string_conversion,
)


class MapKind(Enum):
    """Ordering policy of the outer mapping."""

    HASHMAP = auto()          # Plain dict
    LINKED_HASHMAP = auto()   # Insertion-ordered dict
    TREEMAP = auto()          # Iterates in ascending key order

    @classmethod
    def from_token(cls, token: str) -> "MapKind":
        """Look up a kind by its document spelling, ignoring case."""
        try:
            return cls[token.strip().upper()]
        except KeyError:
            raise ValueError(
                f"Unknown map type {token!r}; expected one of "
                f"{', '.join(cls.__members__)}"
            ) from None


class CollectionKind(Enum):
    """Ordering and uniqueness policy of each key's value group."""

    LIST = auto()          # Duplicates allowed, insertion order
    SET = auto()           # Unique values, no order guarantee
    ORDERED_SET = auto()   # Unique values, insertion order

    @classmethod
    def from_token(cls, token: str) -> "CollectionKind":
        """Look up a kind by its document spelling, ignoring case."""
        try:
            return cls[token.strip().upper()]
        except KeyError:
            raise ValueError(
                f"Unknown collection type {token!r}; expected one of "
                f"{', '.join(cls.__members__)}"
            ) from None


DEFAULT_MAP_KIND = MapKind.HASHMAP
DEFAULT_COLLECTION_KIND = CollectionKind.LIST


@dataclass(frozen=True)
class TypeOverride:
    """Container kinds forced by the caller, one optional value per axis.

    An axis left as ``None`` is free to be taken from the document or the
    default.
    """

    map_kind: Optional[MapKind] = None
    collection_kind: Optional[CollectionKind] = None

    def __post_init__(self) -> None:
        if self.map_kind is not None and not isinstance(self.map_kind, MapKind):
            raise ValueError("map_kind must be a MapKind or None")
        if (
            self.collection_kind is not None
            and not isinstance(self.collection_kind, CollectionKind)
        ):
            raise ValueError("collection_kind must be a CollectionKind or None")

    @classmethod
    def none(cls) -> "TypeOverride":
        return cls()

    @classmethod
    def map_only(cls, map_kind: MapKind) -> "TypeOverride":
        return cls(map_kind=map_kind)

    @classmethod
    def collection_only(cls, collection_kind: CollectionKind) -> "TypeOverride":
        return cls(collection_kind=collection_kind)

    @classmethod
    def both(
        cls, map_kind: MapKind, collection_kind: CollectionKind
    ) -> "TypeOverride":
        return cls(map_kind=map_kind, collection_kind=collection_kind)

    @property
    def is_empty(self) -> bool:
        return self.map_kind is None and self.collection_kind is None

    def merge(self, other: "TypeOverride") -> "TypeOverride":
        """Combine two overrides; axes set on ``other`` win."""
        return TypeOverride(
            map_kind=other.map_kind if other.map_kind is not None else self.map_kind,
            collection_kind=(
                other.collection_kind
                if other.collection_kind is not None
                else self.collection_kind
            ),
        )


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ParserConfig:
    """Immutable configuration consumed by one parse.

    Holds the key and value conversions, the explicit type override and the
    continue-on-error flag. Thread-safe due to frozen dataclass implementation,
    so one configuration can drive any number of concurrent parses.
    """

    key_conversion: Conversion = string_conversion
    value_conversion: Conversion = string_conversion
    type_override: TypeOverride = field(default_factory=TypeOverride)
    continue_on_error: bool = False

    # Grammar vocabulary
    root_tag: str = "map"
    entry_tag: str = "entry"

    # Metadata
    correlation_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the parser configuration."""
        if not callable(self.key_conversion):
            raise ConfigValidationError(
                "key_conversion must be callable", field_name="key_conversion"
            )
        if not callable(self.value_conversion):
            raise ConfigValidationError(
                "value_conversion must be callable", field_name="value_conversion"
            )
        if not isinstance(self.type_override, TypeOverride):
            raise ConfigValidationError(
                "type_override must be a TypeOverride",
                field_name="type_override",
                suggestions=["Use TypeOverride.map_only(...) or TypeOverride.both(...)"],
            )
        if not isinstance(self.continue_on_error, bool):
            raise ConfigValidationError(
                "continue_on_error must be a bool", field_name="continue_on_error"
            )
        for tag_field in ("root_tag", "entry_tag"):
            tag = getattr(self, tag_field)
            if not isinstance(tag, str) or not tag.strip():
                raise ConfigValidationError(
                    f"{tag_field} must be a non-empty string", field_name=tag_field
                )
        if self.root_tag.lower() == self.entry_tag.lower():
            raise ConfigValidationError(
                "root_tag and entry_tag must differ",
                field_name="entry_tag",
            )

    # Pure transformations, one per builder option

    def with_key_conversion(self, conversion: Conversion) -> "ParserConfig":
        return replace(self, key_conversion=conversion)

    def with_value_conversion(self, conversion: Conversion) -> "ParserConfig":
        return replace(self, value_conversion=conversion)

    def with_map_type(self, map_kind: MapKind) -> "ParserConfig":
        """Force the outer mapping kind regardless of the document."""
        return replace(
            self,
            type_override=self.type_override.merge(TypeOverride.map_only(map_kind)),
        )

    def with_collection_type(self, collection_kind: CollectionKind) -> "ParserConfig":
        """Force the value-group kind regardless of the document."""
        return replace(
            self,
            type_override=self.type_override.merge(
                TypeOverride.collection_only(collection_kind)
            ),
        )

    def with_continue_on_error(self, continue_on_error: bool = True) -> "ParserConfig":
        return replace(self, continue_on_error=continue_on_error)

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Keyword arguments for configuration fields to override;
                ``type_override__map_kind`` style keys reach into the override.

        Returns:
            New ParserConfig instance with overrides applied

        Example:
            >>> config = ParserConfig()
            >>> new_config = config.override(
            ...     continue_on_error=True,
            ...     type_override__map_kind=MapKind.TREEMAP
            ... )
        """
        nested: Dict[str, Any] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component != "type_override":
                    raise ConfigValidationError(
                        f"Unknown nested configuration component: {component}",
                        field_name=key,
                    )
                nested[field_name] = value
            else:
                top_level[key] = value

        if nested:
            base = top_level.get("type_override", self.type_override)
            try:
                top_level["type_override"] = replace(base, **nested)
            except (TypeError, ValueError) as e:
                raise ConfigValidationError(str(e), field_name="type_override") from e

        try:
            return replace(self, **top_level)
        except TypeError as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format.

        Conversions are stored by their registered name; a custom conversion
        that was never registered cannot be serialised.
        """
        def _name_of(field_name: str) -> str:
            conversion = getattr(self, field_name)
            registered = conversion_name(conversion)
            if registered is None:
                raise ConfigValidationError(
                    f"{field_name} is not a registered conversion",
                    field_name=field_name,
                    suggestions=["Register it with register_conversion()"],
                )
            return registered

        override = self.type_override
        return {
            "key_conversion": _name_of("key_conversion"),
            "value_conversion": _name_of("value_conversion"),
            "type_override": {
                "map_kind": override.map_kind.name if override.map_kind else None,
                "collection_kind": (
                    override.collection_kind.name if override.collection_kind else None
                ),
            },
            "continue_on_error": self.continue_on_error,
            "root_tag": self.root_tag,
            "entry_tag": self.entry_tag,
            "correlation_id": self.correlation_id,
            "name": self.name,
            "description": self.description,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        Missing keys keep their defaults; unknown keys are rejected.
        """
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration keys: {', '.join(unknown)}",
                suggestions=sorted(known),
            )

        values: Dict[str, Any] = dict(data)
        for field_name in ("key_conversion", "value_conversion"):
            if field_name in values and isinstance(values[field_name], str):
                conversion = get_conversion(values[field_name])
                if conversion is None:
                    raise ConfigValidationError(
                        f"Unknown conversion {values[field_name]!r}",
                        field_name=field_name,
                        suggestions=available_conversions(),
                    )
                values[field_name] = conversion

        raw_override = values.get("type_override")
        if isinstance(raw_override, dict):
            try:
                map_token = raw_override.get("map_kind")
                collection_token = raw_override.get("collection_kind")
                values["type_override"] = TypeOverride(
                    map_kind=MapKind.from_token(map_token) if map_token else None,
                    collection_kind=(
                        CollectionKind.from_token(collection_token)
                        if collection_token else None
                    ),
                )
            except ValueError as e:
                raise ConfigValidationError(str(e), field_name="type_override") from e

        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def strict(cls) -> "ParserConfig":
        """Abort on the first violation."""
        return cls(name="strict", description="Fail-fast parsing")

    @classmethod
    def lenient(cls) -> "ParserConfig":
        """Skip offending entries and keep everything that parses cleanly."""
        return cls(
            continue_on_error=True,
            name="lenient",
            description="Continue-on-error parsing",
        )
