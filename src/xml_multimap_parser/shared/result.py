"""Result objects and diagnostic types for multimap parsing.

This module defines the two-variant ``Result`` type returned by every
conversion, the diagnostic entries recorded for grammar and conversion
violations, and the ``MultimapResult`` returned by the diagnostic API.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class ResultAccessError(LookupError):
    """Raised when reading the value of a Failure or the cause of a Success."""


class Result(Generic[T]):
    """Outcome of a fallible step: exactly one of ``Success`` or ``Failure``."""

    __slots__ = ()

    @property
    def is_success(self) -> bool:
        raise NotImplementedError

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @property
    def value(self) -> T:
        raise NotImplementedError

    @property
    def cause(self) -> BaseException:
        raise NotImplementedError

    def map(self, func: Callable[[T], U]) -> "Result[U]":
        """Apply ``func`` to a successful value, passing failures through."""
        raise NotImplementedError

    def value_or(self, default: T) -> T:
        """Return the value of a Success, or ``default`` for a Failure."""
        return self.value if self.is_success else default


class Success(Result[T]):
    """Successful result holding a converted value."""

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        self._value = value

    @property
    def is_success(self) -> bool:
        return True

    @property
    def value(self) -> T:
        return self._value

    @property
    def cause(self) -> BaseException:
        raise ResultAccessError("Result.Success does not contain an error")

    def map(self, func: Callable[[T], U]) -> Result[U]:
        return Success(func(self._value))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Success) and other._value == self._value

    def __hash__(self) -> int:
        return hash(("Success", self._value))

    def __repr__(self) -> str:
        return f"Success({self._value!r})"


class Failure(Result[T]):
    """Failed result holding the error that caused it."""

    __slots__ = ("_cause",)

    def __init__(self, cause: BaseException) -> None:
        if not isinstance(cause, BaseException):
            raise TypeError("Failure cause must be an exception instance")
        self._cause = cause

    @property
    def is_success(self) -> bool:
        return False

    @property
    def value(self) -> T:
        raise ResultAccessError("Result.Failure does not contain a value")

    @property
    def cause(self) -> BaseException:
        return self._cause

    def map(self, func: Callable[[T], U]) -> Result[U]:
        return Failure(self._cause)

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Failure)
            and type(other._cause) is type(self._cause)
            and other._cause.args == self._cause.args
        )

    def __hash__(self) -> int:
        return hash(("Failure", type(self._cause), self._cause.args))

    def __repr__(self) -> str:
        return f"Failure({self._cause!r})"


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()      # Debug-level information
    INFO = auto()       # Informational messages
    WARNING = auto()    # Violations skipped in continue-on-error mode
    ERROR = auto()      # Violations that aborted a fail-fast parse
    CRITICAL = auto()   # Structural failures that always abort


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    position: Optional[Dict[str, int]] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
            "position": self.position,
            "details": self.details,
        }


@dataclass
class ParseStatistics:
    """Counters collected while walking one document."""

    entries_seen: int = 0
    entries_inserted: int = 0
    entries_skipped: int = 0
    attributes_skipped: int = 0
    subtrees_skipped: int = 0
    processing_time_ms: float = 0.0

    @property
    def skip_rate(self) -> float:
        """Fraction of entry tags that did not make it into the result."""
        if self.entries_seen == 0:
            return 0.0
        return self.entries_skipped / self.entries_seen


@dataclass
class MultimapResult:
    """Comprehensive result of one parse.

    ``mapping`` is always a container of the resolved map kind, empty when the
    parse aborted. ``success`` is True only when no violation was recorded.
    """

    mapping: Any
    map_kind: Any
    collection_kind: Any
    success: bool = True
    aborted: bool = False
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    statistics: ParseStatistics = field(default_factory=ParseStatistics)
    correlation_id: Optional[str] = None

    @property
    def entry_count(self) -> int:
        """Number of distinct keys in the mapping."""
        return len(self.mapping)

    @property
    def value_count(self) -> int:
        """Total number of values across all groups."""
        return sum(len(group) for group in self.mapping.values())

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> DiagnosticEntry:
        """Add diagnostic entry to result."""
        entry = DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id
        )
        self.diagnostics.append(entry)
        return entry

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def summary(self) -> Dict[str, Any]:
        """Get a JSON-friendly summary of the parse."""
        return {
            "success": self.success,
            "aborted": self.aborted,
            "map_kind": getattr(self.map_kind, "name", str(self.map_kind)),
            "collection_kind": getattr(
                self.collection_kind, "name", str(self.collection_kind)
            ),
            "key_count": self.entry_count,
            "value_count": self.value_count,
            "entries_seen": self.statistics.entries_seen,
            "entries_skipped": self.statistics.entries_skipped,
            "processing_time_ms": self.statistics.processing_time_ms,
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
        }
