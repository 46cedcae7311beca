"""Token conversions for multimap keys and values.

A conversion is any callable taking the raw string token read from the
document and returning a ``Result``: ``Success`` with the converted value or
``Failure`` with the error explaining why the token was rejected. Conversions
must be total; the built-ins below never raise.

The built-ins are registered by name so configurations can be serialised
and the command line can refer to them.
"""

import math
import re
import struct
import threading
from typing import Any, Callable, Dict, List, Optional

from xml_multimap_parser.shared.result import Failure, Result, Success

Conversion = Callable[[str], Result[Any]]

INT_MIN, INT_MAX = -(2 ** 31), 2 ** 31 - 1
SHORT_MIN, SHORT_MAX = -(2 ** 15), 2 ** 15 - 1

_INTEGER_PATTERN = re.compile(r"([+-]?)0*([0-9]+)")
_DECIMAL_PATTERN = re.compile(
    r"[+-]?(?:NaN|Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
)


class ConversionError(ValueError):
    """Base error carried by a failed conversion."""

    def __init__(self, message: str, token: str) -> None:
        super().__init__(message)
        self.token = token


class NumberFormatError(ConversionError):
    """Token is not a numeral of the requested type."""


class InvalidArgumentError(ConversionError):
    """Token is outside the vocabulary accepted by the conversion."""


def string_conversion(token: str) -> Result[str]:
    """Identity conversion; always succeeds."""
    return Success(token)


def _parse_integral(token: str, low: int, high: int, type_name: str) -> Result[int]:
    match = _INTEGER_PATTERN.fullmatch(token)
    if not match:
        return Failure(NumberFormatError(f'For input string: "{token}"', token))
    sign, digits = match.groups()
    # Leading zeros are dropped; a longer digit run than the bound is out of range
    number = int(sign + digits) if len(digits) <= len(str(high)) else None
    if number is None or not low <= number <= high:
        return Failure(NumberFormatError(
            f'Value out of range for {type_name}: "{token}"', token
        ))
    return Success(number)


def integer_conversion(token: str) -> Result[int]:
    """Signed 32-bit integer."""
    return _parse_integral(token, INT_MIN, INT_MAX, "integer")


def short_conversion(token: str) -> Result[int]:
    """Signed 16-bit integer."""
    return _parse_integral(token, SHORT_MIN, SHORT_MAX, "short")


def _parse_decimal(token: str) -> Optional[float]:
    stripped = token.strip()
    if not _DECIMAL_PATTERN.fullmatch(stripped):
        return None
    unsigned = stripped.lstrip("+-")
    if unsigned == "NaN":
        return math.nan
    if unsigned == "Infinity":
        return -math.inf if stripped.startswith("-") else math.inf
    return float(stripped)


def double_conversion(token: str) -> Result[float]:
    """Double-precision float."""
    number = _parse_decimal(token)
    if number is None:
        return Failure(NumberFormatError(f'For input string: "{token}"', token))
    return Success(number)


def float_conversion(token: str) -> Result[float]:
    """Single-precision float; values beyond its range become infinities."""
    number = _parse_decimal(token)
    if number is None:
        return Failure(NumberFormatError(f'For input string: "{token}"', token))
    try:
        return Success(struct.unpack("f", struct.pack("f", number))[0])
    except OverflowError:
        return Success(math.copysign(math.inf, number))


def boolean_conversion(token: str) -> Result[bool]:
    """``true`` or ``false``, ignoring case."""
    lowered = token.lower()
    if lowered == "true":
        return Success(True)
    if lowered == "false":
        return Success(False)
    return Failure(InvalidArgumentError("Cannot parse to boolean!", token))


def safe_conversion(conversion: Conversion) -> Conversion:
    """Wrap a caller conversion so that exceptions become ``Failure`` results.

    Also rejects return values that are not ``Result`` instances, which keeps
    the engine from inserting unchecked values.
    """
    def _apply(token: str) -> Result[Any]:
        try:
            result = conversion(token)
        except Exception as e:  # caller code is outside the total-function contract
            return Failure(e)
        if not isinstance(result, Result):
            return Failure(TypeError(
                f"Conversion returned {type(result).__name__}, expected Result"
            ))
        return result

    _apply.__wrapped__ = conversion  # type: ignore[attr-defined]
    return _apply


_REGISTRY_LOCK = threading.RLock()
_REGISTRY: Dict[str, Conversion] = {
    "string": string_conversion,
    "integer": integer_conversion,
    "double": double_conversion,
    "float": float_conversion,
    "short": short_conversion,
    "boolean": boolean_conversion,
}


def register_conversion(name: str, conversion: Conversion) -> None:
    """Register a conversion under ``name`` for configuration files and the CLI."""
    if not name:
        raise ValueError("Conversion name cannot be empty")
    if not callable(conversion):
        raise TypeError("Conversion must be callable")
    with _REGISTRY_LOCK:
        _REGISTRY[name.lower()] = conversion


def get_conversion(name: str) -> Optional[Conversion]:
    with _REGISTRY_LOCK:
        return _REGISTRY.get(name.lower())


def conversion_name(conversion: Conversion) -> Optional[str]:
    """Reverse lookup of a registered conversion."""
    with _REGISTRY_LOCK:
        for name, registered in _REGISTRY.items():
            if registered is conversion:
                return name
    return None


def available_conversions() -> List[str]:
    with _REGISTRY_LOCK:
        return sorted(_REGISTRY)
