"""Error policy and result assembly.

Every fallible step of a parse reports its violations through
``ErrorPolicy``. Fail-fast mode turns the first violation into
``AbortParse``; continue mode records a warning and lets the caller skip the
offending unit. Structural violations on the root tag abort in both modes.

``ResultAssembler`` owns the mapping being built and only ever receives
entries whose key and value both converted.
"""

from typing import Any, Dict, Optional

from xml_multimap_parser.containers.factory import add_value, new_collection, new_map
from xml_multimap_parser.conversion.conversions import Conversion, safe_conversion
from xml_multimap_parser.engine.overrides import ResolvedKinds
from xml_multimap_parser.shared.logging import CorrelationLogger
from xml_multimap_parser.shared.result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    MultimapResult,
    Result,
)

UNIT_ATTRIBUTE = "attribute"
UNIT_SUBTREE = "subtree"
UNIT_ENTRY = "entry"


class AbortParse(Exception):
    """Stops the walker; carries the diagnostic that caused the abort."""

    def __init__(self, diagnostic: DiagnosticEntry) -> None:
        super().__init__(diagnostic.message)
        self.diagnostic = diagnostic


class ErrorPolicy:
    """Single checkpoint for every violation of one parse."""

    def __init__(
        self,
        continue_on_error: bool,
        result: MultimapResult,
        logger: CorrelationLogger,
    ) -> None:
        self.continue_on_error = continue_on_error
        self.result = result
        self.logger = logger
        self.violation_count = 0

    def fatal(
        self,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record a violation that aborts regardless of the mode."""
        self.violation_count += 1
        diagnostic = self.result.add_diagnostic(
            DiagnosticSeverity.CRITICAL, message, component, position, details
        )
        self.logger.error(message, extra={"position": position, **(details or {})})
        raise AbortParse(diagnostic)

    def violation(
        self,
        message: str,
        component: str,
        unit: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record a recoverable violation.

        Raises:
            AbortParse: in fail-fast mode

        In continue mode returns normally; the caller must discard ``unit``.
        """
        self.violation_count += 1
        details = dict(details or {}, unit=unit)

        if not self.continue_on_error:
            diagnostic = self.result.add_diagnostic(
                DiagnosticSeverity.ERROR, message, component, position, details
            )
            self.logger.info(
                "Aborting parse on first violation",
                extra={"violation": message, "position": position},
            )
            raise AbortParse(diagnostic)

        self.result.add_diagnostic(
            DiagnosticSeverity.WARNING, message, component, position, details
        )
        if unit == UNIT_ATTRIBUTE:
            self.result.statistics.attributes_skipped += 1
        elif unit == UNIT_SUBTREE:
            self.result.statistics.subtrees_skipped += 1
        self.logger.warning(
            f"Skipping {unit}: {message}",
            extra={"position": position},
        )

    def convert(
        self,
        conversion: Conversion,
        token: str,
        role: str,
        position: Optional[Dict[str, int]] = None,
    ) -> Result[Any]:
        """Run a conversion; a Failure is reported as an entry violation."""
        result = safe_conversion(conversion)(token)
        if result.is_failure:
            cause = result.cause
            self.violation(
                f"Cannot convert {role} {token!r}: {cause}",
                "conversion",
                UNIT_ENTRY,
                position,
                details={
                    "role": role,
                    "token": token,
                    "error_type": type(cause).__name__,
                },
            )
        return result


class ResultAssembler:
    """Groups converted values by key in containers of the resolved kinds."""

    def __init__(self, kinds: ResolvedKinds) -> None:
        self.kinds = kinds
        self.mapping = new_map(kinds.map_kind)

    def insert(self, key: Any, value: Any) -> None:
        """Add ``value`` to the group of ``key``, creating the group if needed.

        Raises:
            TypeError: if the key is unhashable or cannot be ordered against
                the keys of a sorted mapping; the mapping is left unchanged.
        """
        group = self.mapping.get(key)
        if group is None:
            group = new_collection(self.kinds.collection_kind)
            add_value(group, value)
            self.mapping[key] = group
        else:
            add_value(group, value)

    def empty(self) -> Any:
        """Fresh empty mapping of the resolved kind, used when a parse aborts."""
        return new_map(self.kinds.map_kind)
