"""Core parser API for multimap documents.

This module provides module-level parse functions and the ``MultimapParser``
builder, following a never-fail philosophy: problems in the document, the
input source or a caller conversion are reported as diagnostics and an
empty (or partial, in continue-on-error mode) mapping of the resolved kind,
never as an exception.
"""

import time
from pathlib import Path
from typing import Any, BinaryIO, MutableMapping, Optional, TextIO, Union

from xml_multimap_parser.containers.factory import new_map
from xml_multimap_parser.conversion.conversions import Conversion
from xml_multimap_parser.engine.overrides import resolve_kinds
from xml_multimap_parser.engine.walker import DocumentWalker
from xml_multimap_parser.shared import (
    CollectionKind,
    DiagnosticSeverity,
    MapKind,
    MultimapResult,
    ParserConfig,
    get_logger,
)

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]
Multimap = MutableMapping[Any, Any]

# Constants for API operations
PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000  # Milliseconds per second conversion


def parse(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> Multimap:
    """Parse a multimap document from any supported input.

    Args:
        input_data: Document as string, bytes, file-like object, or Path
        config: Parser configuration (defaults to string keys and values,
            fail-fast)
        correlation_id: Optional correlation ID for request tracking

    Returns:
        Mapping from converted keys to value groups; empty on abort

    Examples:
        >>> parse('<map><entry key="foo" value="bar"/></map>')
        {'foo': ['bar']}

        >>> config = ParserConfig().with_value_conversion(integer_conversion)
        >>> parse('<map><entry key="a">1</entry></map>', config)
        {'a': [1]}
    """
    return parse_with_diagnostics(input_data, config, correlation_id).mapping


def parse_string(
    xml_string: str,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> Multimap:
    """Parse a multimap document held in a string."""
    logger = get_logger(__name__, correlation_id, "parse_string")
    logger.debug(
        "Starting string parse operation",
        extra={
            "content_length": len(xml_string),
            "preview": (
                xml_string[:PREVIEW_LENGTH] + "..."
                if len(xml_string) > PREVIEW_LENGTH else xml_string
            )
        }
    )
    return _parse_direct_content(xml_string, config, correlation_id).mapping


def parse_file(
    file_path: Union[str, Path],
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> Multimap:
    """Parse a multimap document from a file.

    A missing or unreadable file yields an empty mapping of the kind the
    configuration forces (or the default kind).
    """
    return parse_file_with_diagnostics(file_path, config, correlation_id).mapping


def parse_with_diagnostics(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> MultimapResult:
    """Parse from any supported input and return the full ``MultimapResult``.

    Detects the input type and routes to the matching loader.
    """
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse")

    logger.debug(
        "Starting universal parse operation",
        extra={
            "input_type": type(input_data).__name__,
            "has_config": config is not None,
        }
    )

    try:
        if isinstance(input_data, (str, bytes)):
            return _parse_direct_content(input_data, config, correlation_id)
        if isinstance(input_data, Path):
            return parse_file_with_diagnostics(input_data, config, correlation_id)
        if hasattr(input_data, "read"):
            return _parse_file_like_object(input_data, config, correlation_id)
        return _create_error_result(
            f"Unsupported input type: {type(input_data).__name__}",
            config,
            correlation_id,
            (time.time() - start_time) * MS_PER_SECOND
        )

    except Exception as e:
        # Never-fail guarantee: return error result with diagnostics
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        logger.exception(
            "Parse operation failed",
            extra={"processing_time_ms": processing_time}
        )
        return _create_error_result(
            f"Parse operation failed: {e}", config, correlation_id, processing_time
        )


def parse_file_with_diagnostics(
    file_path: Union[str, Path],
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> MultimapResult:
    """Read ``file_path`` as bytes and parse it, letting lxml detect the encoding."""
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse_file")
    path_obj = Path(file_path) if isinstance(file_path, str) else file_path

    logger.debug(
        "Starting file parse operation",
        extra={"file_path": str(path_obj)}
    )

    error_message = None
    if not path_obj.exists():
        error_message = f"File not found: {path_obj}"
    elif not path_obj.is_file():
        error_message = f"Path is not a file: {path_obj}"

    if error_message is None:
        try:
            with path_obj.open("rb") as file:
                raw_data = file.read()
        except OSError as e:
            error_message = f"Cannot read file {path_obj}: {e}"

    if error_message is not None:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return _create_error_result(
            error_message, config, correlation_id, processing_time
        )

    result = _parse_direct_content(raw_data, config, correlation_id)
    result.add_diagnostic(
        DiagnosticSeverity.INFO,
        "File parsed",
        "file_parser",
        details={"file_path": str(path_obj), "size_bytes": len(raw_data)}
    )
    return result


def _parse_direct_content(
    content: Union[str, bytes],
    config: Optional[ParserConfig],
    correlation_id: Optional[str]
) -> MultimapResult:
    """Internal function to parse direct content (string or bytes)."""
    start_time = time.time()
    try:
        walker = DocumentWalker(config=config, correlation_id=correlation_id)
        return walker.walk(content)

    except Exception as e:
        # Never-fail: return error result
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        get_logger(__name__, correlation_id, "parse_direct").exception(
            "Direct content parsing failed",
            extra={"error": str(e), "processing_time_ms": processing_time}
        )
        return _create_error_result(
            f"Content parsing failed: {e}", config, correlation_id, processing_time
        )


def _parse_file_like_object(
    file_obj: Union[BinaryIO, TextIO],
    config: Optional[ParserConfig],
    correlation_id: Optional[str]
) -> MultimapResult:
    """Internal function to parse file-like objects."""
    start_time = time.time()
    try:
        content = file_obj.read()
    except (OSError, ValueError) as e:
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return _create_error_result(
            f"Cannot read input: {e}", config, correlation_id, processing_time
        )

    if not isinstance(content, (str, bytes)):
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return _create_error_result(
            f"read() returned {type(content).__name__}, expected str or bytes",
            config,
            correlation_id,
            processing_time
        )
    return _parse_direct_content(content, config, correlation_id)


def _create_error_result(
    error_message: str,
    config: Optional[ParserConfig],
    correlation_id: Optional[str],
    processing_time: float
) -> MultimapResult:
    """Create an empty, correctly-typed result for a parse that never started."""
    kinds = resolve_kinds((config or ParserConfig()).type_override)
    result = MultimapResult(
        mapping=new_map(kinds.map_kind),
        map_kind=kinds.map_kind,
        collection_kind=kinds.collection_kind,
        success=False,
        aborted=True,
        correlation_id=correlation_id,
    )
    result.statistics.processing_time_ms = processing_time
    result.add_diagnostic(
        DiagnosticSeverity.CRITICAL,
        error_message,
        "api_parser"
    )
    return result


class MultimapParser:
    """Configured multimap parser with an immutable builder surface.

    Every ``with_*`` call returns a new parser; the receiver is unchanged, so a
    parser can be shared freely between threads.

    Examples:
        >>> parser = (
        ...     MultimapParser()
        ...     .with_key_conversion(integer_conversion)
        ...     .with_value_conversion(double_conversion)
        ...     .with_map_type(MapKind.TREEMAP)
        ... )
        >>> parser.parse('<map><entry key="2" value="0.5"/></map>')
        SortedKeyDict({2: [0.5]})
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self._config = config or ParserConfig()
        self._correlation_id = correlation_id or self._config.correlation_id

    @property
    def config(self) -> ParserConfig:
        return self._config

    @property
    def correlation_id(self) -> Optional[str]:
        return self._correlation_id

    def _derive(self, config: ParserConfig) -> "MultimapParser":
        return MultimapParser(config, self._correlation_id)

    def with_key_conversion(self, conversion: Conversion) -> "MultimapParser":
        return self._derive(self._config.with_key_conversion(conversion))

    def with_value_conversion(self, conversion: Conversion) -> "MultimapParser":
        return self._derive(self._config.with_value_conversion(conversion))

    def with_map_type(self, map_kind: MapKind) -> "MultimapParser":
        """Force the map kind; wins over the document's ``type`` attribute."""
        return self._derive(self._config.with_map_type(map_kind))

    def with_collection_type(self, collection_kind: CollectionKind) -> "MultimapParser":
        """Force the collection kind; wins over the ``collection`` attribute."""
        return self._derive(self._config.with_collection_type(collection_kind))

    def continue_on_error(self, continue_on_error: bool = True) -> "MultimapParser":
        """Skip offending units instead of aborting on the first violation."""
        return self._derive(self._config.with_continue_on_error(continue_on_error))

    def with_correlation_id(self, correlation_id: str) -> "MultimapParser":
        return MultimapParser(self._config, correlation_id)

    def parse(self, input_data: InputType) -> Multimap:
        """Parse ``input_data`` and return the mapping."""
        return parse(input_data, self._config, self._correlation_id)

    def parse_with_diagnostics(self, input_data: InputType) -> MultimapResult:
        return parse_with_diagnostics(input_data, self._config, self._correlation_id)

    def __repr__(self) -> str:
        return f"MultimapParser({self._config!r})"
