"""Conversion pipeline turning raw document tokens into typed keys and values.

Key Components:
    Conversion: Callable type ``str -> Result``
    string_conversion, integer_conversion, double_conversion,
    float_conversion, short_conversion, boolean_conversion: built-ins
    register_conversion / get_conversion: name registry used by
    configuration files and the command line
"""

from .conversions import (
    Conversion,
    ConversionError,
    InvalidArgumentError,
    NumberFormatError,
    available_conversions,
    boolean_conversion,
    conversion_name,
    double_conversion,
    float_conversion,
    get_conversion,
    integer_conversion,
    register_conversion,
    safe_conversion,
    short_conversion,
    string_conversion,
)

__all__ = [
    "Conversion",
    "ConversionError",
    "InvalidArgumentError",
    "NumberFormatError",
    "available_conversions",
    "boolean_conversion",
    "conversion_name",
    "double_conversion",
    "float_conversion",
    "get_conversion",
    "integer_conversion",
    "register_conversion",
    "safe_conversion",
    "short_conversion",
    "string_conversion",
]
