"""Shared utilities for multimap parsing.

This module provides shared data structures, configuration objects, result types,
and utility functions used across the conversion, engine and API layers.
"""

from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    Failure,
    MultimapResult,
    ParseStatistics,
    Result,
    ResultAccessError,
    Success,
)
from .config import (
    CollectionKind,
    ConfigError,
    ConfigValidationError,
    MapKind,
    ParserConfig,
    TypeOverride,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)

__all__ = [
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "Failure",
    "MultimapResult",
    "ParseStatistics",
    "Result",
    "ResultAccessError",
    "Success",
    "CollectionKind",
    "ConfigError",
    "ConfigValidationError",
    "MapKind",
    "ParserConfig",
    "TypeOverride",
    "CorrelationLogger",
    "get_logger",
]
