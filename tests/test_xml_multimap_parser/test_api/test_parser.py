"""Tests for the core parser API with progressive disclosure.

Tests the module-level parse functions and the MultimapParser builder,
ensuring the never-fail contract across every input type.
"""

import io
import tempfile
from collections import OrderedDict
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from xml_multimap_parser.api.parser import (
    MultimapParser,
    parse,
    parse_file,
    parse_file_with_diagnostics,
    parse_string,
    parse_with_diagnostics,
)
from xml_multimap_parser.containers.factory import SortedKeyDict
from xml_multimap_parser.conversion.conversions import (
    double_conversion,
    integer_conversion,
)
from xml_multimap_parser.shared.config import CollectionKind, MapKind, ParserConfig
from xml_multimap_parser.shared.result import DiagnosticSeverity, MultimapResult

DOCUMENT = '<map><entry key="foo" value="bar"/><entry key="foo">baz</entry></map>'


class TestSimpleParsingFunctions:
    """Test Level 1: Simple module-level parsing functions."""

    def test_parse_string_basic(self):
        """Test basic string parsing functionality."""
        assert parse_string(DOCUMENT) == {"foo": ["bar", "baz"]}

    def test_parse_universal_string(self):
        """Test universal parse function with string input."""
        assert parse(DOCUMENT) == {"foo": ["bar", "baz"]}

    def test_parse_universal_bytes(self):
        """Test universal parse function with bytes input."""
        xml = b'<?xml version="1.0" encoding="UTF-8"?><map><entry key="k" value="v"/></map>'
        assert parse(xml) == {"k": ["v"]}

    def test_parse_string_with_declaration(self):
        """Test str input that carries an XML declaration."""
        xml = '<?xml version="1.0" encoding="UTF-8"?>\n<map><entry key="k" value="v"/></map>'
        assert parse_string(xml) == {"k": ["v"]}

    def test_parse_file_like_objects(self):
        """Test text and binary file-like objects."""
        assert parse(io.StringIO(DOCUMENT)) == {"foo": ["bar", "baz"]}
        assert parse(io.BytesIO(DOCUMENT.encode("utf-8"))) == {"foo": ["bar", "baz"]}

    def test_parse_with_config(self):
        """Test conversions and kinds from a configuration."""
        config = (
            ParserConfig()
            .with_key_conversion(integer_conversion)
            .with_value_conversion(double_conversion)
            .with_map_type(MapKind.TREEMAP)
        )
        result = parse('<map><entry key="2" value="0.5"/><entry key="1" value="2"/></map>', config)

        assert isinstance(result, SortedKeyDict)
        assert list(result.items()) == [(1, [2.0]), (2, [0.5])]

    def test_parse_string_empty(self):
        """Test empty input returns an empty mapping instead of raising."""
        assert parse_string("") == {}


class TestFileParsing:
    """Test file-based parsing."""

    def test_parse_file(self):
        """Test parsing from a file path string and Path."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".xml", delete=False) as f:
            f.write(DOCUMENT)
            temp_path = Path(f.name)

        try:
            assert parse_file(str(temp_path)) == {"foo": ["bar", "baz"]}
            assert parse(temp_path) == {"foo": ["bar", "baz"]}
        finally:
            temp_path.unlink()

    def test_parse_file_diagnostics(self, tmp_path):
        """Test file parsing records an informational diagnostic."""
        path = tmp_path / "doc.xml"
        path.write_bytes(DOCUMENT.encode("utf-8"))

        result = parse_file_with_diagnostics(path)

        assert result.success is True
        info = result.get_diagnostics_by_severity(DiagnosticSeverity.INFO)
        assert info[0].details["file_path"] == str(path)
        assert info[0].details["size_bytes"] == len(DOCUMENT)

    def test_parse_file_nonexistent(self):
        """Test a missing file yields an empty mapping of the forced kind."""
        config = ParserConfig().with_map_type(MapKind.LINKED_HASHMAP)
        result = parse_file_with_diagnostics("/nonexistent/file.xml", config)

        assert isinstance(result.mapping, OrderedDict)
        assert len(result.mapping) == 0
        assert result.aborted is True
        assert "File not found" in result.diagnostics[0].message
        assert parse_file("/nonexistent/file.xml") == {}

    def test_parse_file_directory(self, tmp_path):
        """Test a directory path is reported, not raised."""
        result = parse_file_with_diagnostics(tmp_path)

        assert result.success is False
        assert "not a file" in result.diagnostics[0].message

    def test_parse_file_unreadable(self, tmp_path):
        """Test read errors are reported as diagnostics."""
        path = tmp_path / "doc.xml"
        path.write_text(DOCUMENT)

        with patch.object(Path, "open", side_effect=PermissionError("denied")):
            result = parse_file_with_diagnostics(path)

        assert result.mapping == {}
        assert "Cannot read file" in result.diagnostics[0].message


class TestNeverFail:
    """Test that no input makes the API raise."""

    def test_unsupported_input_type(self):
        """Test unsupported input types produce a CRITICAL diagnostic."""
        result = parse_with_diagnostics(12345)  # type: ignore[arg-type]

        assert result.mapping == {}
        assert result.success is False
        assert result.diagnostics[0].severity is DiagnosticSeverity.CRITICAL
        assert "Unsupported input type" in result.diagnostics[0].message

    def test_failing_reader(self):
        """Test a file-like object whose read() fails."""
        reader = Mock()
        reader.read.side_effect = OSError("disk error")

        result = parse_with_diagnostics(reader)

        assert result.aborted is True
        assert "Cannot read input" in result.diagnostics[0].message

    def test_reader_returning_non_text(self):
        """Test a file-like object returning something other than text."""
        reader = Mock()
        reader.read.return_value = 42

        result = parse_with_diagnostics(reader)

        assert "expected str or bytes" in result.diagnostics[0].message

    def test_unexpected_walker_error(self):
        """Test unexpected internal errors become diagnostics."""
        with patch("xml_multimap_parser.api.parser.DocumentWalker") as walker_class:
            walker_class.return_value.walk.side_effect = RuntimeError("boom")
            result = parse_with_diagnostics(DOCUMENT)

        assert isinstance(result, MultimapResult)
        assert result.mapping == {}
        assert "boom" in result.diagnostics[0].message

    def test_malformed_markup(self):
        """Test malformed markup returns an empty mapping."""
        assert parse("<map><entry></map>") == {}

    def test_malformed_markup_ignores_declared_kinds(self):
        """Test a malformed document falls back to the default kinds."""
        result = parse_with_diagnostics('<map type="TREEMAP"><entry key="a" value="b"/>')

        assert result.aborted is True
        assert result.map_kind is MapKind.HASHMAP
        assert result.diagnostics[0].severity is DiagnosticSeverity.CRITICAL

    def test_correlation_id_propagates(self):
        """Test diagnostics carry the caller's correlation ID."""
        result = parse_with_diagnostics("<other/>", correlation_id="req-42")

        assert result.correlation_id == "req-42"
        assert result.diagnostics[0].correlation_id == "req-42"


class TestMultimapParser:
    """Test Level 2: the configured parser builder."""

    def test_default_parser(self):
        """Test a parser with default configuration."""
        parser = MultimapParser()

        assert parser.config == ParserConfig()
        assert parser.parse(DOCUMENT) == {"foo": ["bar", "baz"]}

    def test_builder_is_immutable(self):
        """Test each builder call returns a new parser."""
        base = MultimapParser()
        derived = (
            base.with_key_conversion(integer_conversion)
            .with_value_conversion(integer_conversion)
            .with_map_type(MapKind.TREEMAP)
            .with_collection_type(CollectionKind.SET)
            .continue_on_error()
        )

        assert base.config == ParserConfig()
        assert derived is not base
        assert derived.config.continue_on_error is True
        assert derived.config.type_override.map_kind is MapKind.TREEMAP

        result = derived.parse(
            '<map><entry key="2" value="1"/><entry key="x" value="1"/>'
            '<entry key="1" value="3"/><entry key="2" value="1"/></map>'
        )
        assert list(result.items()) == [(1, {3}), (2, {1})]

    def test_continue_on_error_toggle(self):
        """Test the continue flag can be switched back off."""
        parser = MultimapParser().continue_on_error().continue_on_error(False)

        assert parser.config.continue_on_error is False

    def test_parse_with_diagnostics(self):
        """Test the parser exposes the full result."""
        parser = MultimapParser().with_correlation_id("abc")
        result = parser.parse_with_diagnostics('<map foo="1"/>')

        assert result.aborted is True
        assert result.correlation_id == "abc"
        assert parser.correlation_id == "abc"

    def test_correlation_id_from_config(self):
        """Test the parser falls back to the configuration's correlation ID."""
        parser = MultimapParser(ParserConfig(correlation_id="cfg"))

        assert parser.correlation_id == "cfg"

    def test_repr(self):
        """Test the parser representation includes its configuration."""
        assert repr(MultimapParser()).startswith("MultimapParser(ParserConfig(")

    @pytest.mark.parametrize("map_kind", list(MapKind))
    def test_override_kind_on_empty_result(self, map_kind):
        """Test an aborted parse still returns the overridden map kind."""
        result = MultimapParser().with_map_type(map_kind).parse_with_diagnostics("")

        assert result.map_kind is map_kind
        assert len(result.mapping) == 0
