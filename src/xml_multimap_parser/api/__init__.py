"""Public parsing API and integration adapters."""

from .adapters import (
    AdapterMetadata,
    AdapterType,
    ConversionResult,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    list_available_adapters,
    register_adapter,
)
from .parser import (
    MultimapParser,
    parse,
    parse_file,
    parse_file_with_diagnostics,
    parse_string,
    parse_with_diagnostics,
)

__all__ = [
    "AdapterMetadata",
    "AdapterType",
    "ConversionResult",
    "IntegrationAdapter",
    "LxmlAdapter",
    "PandasAdapter",
    "get_adapter",
    "list_available_adapters",
    "register_adapter",
    "MultimapParser",
    "parse",
    "parse_file",
    "parse_file_with_diagnostics",
    "parse_string",
    "parse_with_diagnostics",
]
