"""XML multimap parser.

Reads XML documents describing a multimap (a mapping from each key to a
group of values) into Python containers, with caller-supplied conversions for
keys and values and a never-fail API that reports problems as diagnostics.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file()
- Level 2: Configured parser - MultimapParser builder and ParserConfig
- Level 3: Full results - parse_with_diagnostics() returning MultimapResult
"""

__version__ = "0.1.0"
__author__ = "XML Multimap Parser Team"

# Level 1 and 2: functions and configured parser
from .api import (
    MultimapParser,
    parse,
    parse_file,
    parse_string,
    parse_with_diagnostics,
)

# Conversions
from .conversion import (
    Conversion,
    boolean_conversion,
    double_conversion,
    float_conversion,
    integer_conversion,
    register_conversion,
    short_conversion,
    string_conversion,
)

# Configuration classes for advanced usage
from .shared.config import CollectionKind, MapKind, ParserConfig, TypeOverride

# Core result objects for all API levels
from .shared.result import Failure, MultimapResult, Result, Success

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions
    "parse",
    "parse_string",
    "parse_file",

    # Level 2 and 3: Configured parser and full results
    "MultimapParser",
    "parse_with_diagnostics",
    "MultimapResult",

    # Conversions
    "Conversion",
    "Result",
    "Success",
    "Failure",
    "string_conversion",
    "integer_conversion",
    "short_conversion",
    "double_conversion",
    "float_conversion",
    "boolean_conversion",
    "register_conversion",

    # Configuration classes
    "ParserConfig",
    "TypeOverride",
    "MapKind",
    "CollectionKind",
]
