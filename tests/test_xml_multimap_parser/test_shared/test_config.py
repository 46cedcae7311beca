"""Comprehensive tests for configuration system."""

import json

import pytest

from xml_multimap_parser.conversion.conversions import (
    boolean_conversion,
    integer_conversion,
    string_conversion,
)
from xml_multimap_parser.shared.config import (
    CollectionKind,
    ConfigError,
    ConfigValidationError,
    MapKind,
    ParserConfig,
    TypeOverride,
)
from xml_multimap_parser.shared.result import Success


class TestKinds:
    """Test MapKind and CollectionKind lookup."""

    def test_from_token_case_insensitive(self):
        """Test document spellings are matched ignoring case."""
        assert MapKind.from_token("treemap") is MapKind.TREEMAP
        assert MapKind.from_token(" Linked_HashMap ") is MapKind.LINKED_HASHMAP
        assert CollectionKind.from_token("ordered_set") is CollectionKind.ORDERED_SET
        assert CollectionKind.from_token("LIST") is CollectionKind.LIST

    def test_from_token_unknown(self):
        """Test unknown spellings raise ValueError naming the choices."""
        with pytest.raises(ValueError, match="HASHMAP"):
            MapKind.from_token("bogus")
        with pytest.raises(ValueError, match="ORDERED_SET"):
            CollectionKind.from_token("bag")


class TestTypeOverride:
    """Test suite for TypeOverride."""

    def test_variants(self):
        """Test the four override variants."""
        assert TypeOverride.none().is_empty
        assert TypeOverride.map_only(MapKind.TREEMAP) == TypeOverride(MapKind.TREEMAP, None)
        assert TypeOverride.collection_only(CollectionKind.SET).map_kind is None
        both = TypeOverride.both(MapKind.TREEMAP, CollectionKind.SET)
        assert both.map_kind is MapKind.TREEMAP
        assert both.collection_kind is CollectionKind.SET
        assert not both.is_empty

    def test_merge_other_axes_win(self):
        """Test merge keeps axes the other override leaves unset."""
        base = TypeOverride.both(MapKind.TREEMAP, CollectionKind.SET)
        merged = base.merge(TypeOverride.map_only(MapKind.LINKED_HASHMAP))

        assert merged.map_kind is MapKind.LINKED_HASHMAP
        assert merged.collection_kind is CollectionKind.SET

    def test_invalid_kind_rejected(self):
        """Test non-enum kinds are rejected."""
        with pytest.raises(ValueError):
            TypeOverride(map_kind="TREEMAP")


class TestParserConfig:
    """Test suite for ParserConfig."""

    def test_default_configuration(self):
        """Test default parser configuration values."""
        config = ParserConfig()

        assert config.key_conversion is string_conversion
        assert config.value_conversion is string_conversion
        assert config.type_override.is_empty
        assert config.continue_on_error is False
        assert config.root_tag == "map"
        assert config.entry_tag == "entry"

    def test_with_methods_return_new_config(self):
        """Test every with_* method leaves the receiver unchanged."""
        base = ParserConfig()
        derived = (
            base.with_key_conversion(integer_conversion)
            .with_value_conversion(boolean_conversion)
            .with_map_type(MapKind.TREEMAP)
            .with_collection_type(CollectionKind.SET)
            .with_continue_on_error()
        )

        assert base == ParserConfig()
        assert derived.key_conversion is integer_conversion
        assert derived.value_conversion is boolean_conversion
        assert derived.type_override == TypeOverride.both(
            MapKind.TREEMAP, CollectionKind.SET
        )
        assert derived.continue_on_error is True

    def test_single_axis_override(self):
        """Test that overriding one axis leaves the other free."""
        config = ParserConfig().with_map_type(MapKind.LINKED_HASHMAP)

        assert config.type_override.map_kind is MapKind.LINKED_HASHMAP
        assert config.type_override.collection_kind is None

    def test_frozen(self):
        """Test configuration immutability."""
        config = ParserConfig()
        with pytest.raises(AttributeError):
            config.continue_on_error = True  # type: ignore[misc]

    def test_validation_failures(self):
        """Test configuration validation."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ParserConfig(key_conversion="integer")  # type: ignore[arg-type]
        assert exc_info.value.field_name == "key_conversion"

        with pytest.raises(ConfigValidationError):
            ParserConfig(continue_on_error="yes")  # type: ignore[arg-type]
        with pytest.raises(ConfigValidationError):
            ParserConfig(root_tag="  ")
        with pytest.raises(ConfigValidationError, match="must differ"):
            ParserConfig(root_tag="item", entry_tag="ITEM")
        with pytest.raises(ConfigValidationError):
            ParserConfig(type_override=None)  # type: ignore[arg-type]

    def test_validation_error_hierarchy(self):
        """Test ConfigValidationError is a ConfigError."""
        assert issubclass(ConfigValidationError, ConfigError)

    def test_override(self):
        """Test generic override including nested type override keys."""
        config = ParserConfig().override(
            continue_on_error=True,
            type_override__map_kind=MapKind.TREEMAP,
        )

        assert config.continue_on_error is True
        assert config.type_override.map_kind is MapKind.TREEMAP
        assert config.type_override.collection_kind is None

    def test_override_unknown_field(self):
        """Test override rejects unknown fields."""
        with pytest.raises(ConfigValidationError):
            ParserConfig().override(no_such_field=1)
        with pytest.raises(ConfigValidationError, match="Unknown nested"):
            ParserConfig().override(walker__depth=1)

    def test_presets(self):
        """Test preset configurations."""
        assert ParserConfig.strict().continue_on_error is False
        assert ParserConfig.strict().name == "strict"
        assert ParserConfig.lenient().continue_on_error is True


class TestConfigSerialisation:
    """Test dictionary and JSON round trips."""

    def test_to_dict_uses_conversion_names(self):
        """Test conversions are written by registered name."""
        config = (
            ParserConfig()
            .with_value_conversion(integer_conversion)
            .with_collection_type(CollectionKind.ORDERED_SET)
        )

        data = config.to_dict()
        assert data["key_conversion"] == "string"
        assert data["value_conversion"] == "integer"
        assert data["type_override"] == {"map_kind": None, "collection_kind": "ORDERED_SET"}
        assert data["continue_on_error"] is False

    def test_json_round_trip(self):
        """Test configuration survives a JSON round trip."""
        config = (
            ParserConfig(name="custom")
            .with_key_conversion(integer_conversion)
            .with_map_type(MapKind.TREEMAP)
            .with_continue_on_error()
        )

        restored = ParserConfig.from_json(config.to_json())
        assert restored == config

    def test_from_dict_partial(self):
        """Test missing keys keep defaults and kinds are read case-insensitively."""
        config = ParserConfig.from_dict({
            "value_conversion": "boolean",
            "type_override": {"map_kind": "treemap"},
        })

        assert config.value_conversion is boolean_conversion
        assert config.type_override.map_kind is MapKind.TREEMAP
        assert config.key_conversion is string_conversion

    def test_from_dict_errors(self):
        """Test invalid dictionaries are rejected with suggestions."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ParserConfig.from_dict({"value_conversion": "decimal"})
        assert "integer" in exc_info.value.suggestions

        with pytest.raises(ConfigValidationError, match="Unknown configuration keys"):
            ParserConfig.from_dict({"strict_mode": True})

        with pytest.raises(ConfigValidationError):
            ParserConfig.from_dict({"type_override": {"map_kind": "HEAP"}})

    def test_from_json_errors(self):
        """Test malformed JSON is reported as a validation error."""
        with pytest.raises(ConfigValidationError, match="Invalid configuration JSON"):
            ParserConfig.from_json("{not json")
        with pytest.raises(ConfigValidationError, match="must be an object"):
            ParserConfig.from_json(json.dumps([1, 2]))

    def test_unregistered_conversion_cannot_be_serialised(self):
        """Test a custom conversion without a name cannot be written out."""
        config = ParserConfig().with_key_conversion(lambda token: Success(token))

        with pytest.raises(ConfigValidationError, match="not a registered conversion"):
            config.to_dict()
