"""Integration adapters for parsed multimaps.

This module provides adapters that move a ``MultimapResult`` to and from the
data structures of other libraries: a long-form pandas ``DataFrame`` (one row
per value) and an lxml element tree written in the attribute entry form.
"""

import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Type

from xml_multimap_parser.engine.overrides import KindSource, ResolvedKinds
from xml_multimap_parser.engine.policy import ResultAssembler
from xml_multimap_parser.shared import (
    CollectionKind,
    DiagnosticEntry,
    DiagnosticSeverity,
    MapKind,
    MultimapResult,
    ParserConfig,
    get_logger,
)

MS_PER_SECOND = 1000


class AdapterType(Enum):
    """Types of integration adapters."""

    XML_LIBRARY = auto()     # XML processing libraries (lxml)
    DATA_FRAME = auto()      # DataFrame libraries (pandas)


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    version: str
    adapter_type: AdapterType
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of an adapter conversion."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters.

    Conversions never raise: failures are returned as an unsuccessful
    ``ConversionResult`` carrying an ERROR diagnostic.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library can be imported."""

    @abstractmethod
    def to_target(self, result: MultimapResult) -> ConversionResult:
        """Convert a parsed multimap to the target format."""

    @abstractmethod
    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert target data back into a ``MultimapResult``."""

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        self._logger.warning(error_message)
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )


def _format_token(value: Any) -> str:
    """Render a converted value the way the built-in conversions read it back."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value != value:
            return "NaN"
        if value in (float("inf"), float("-inf")):
            return "Infinity" if value > 0 else "-Infinity"
        return repr(value)
    return str(value)


class PandasAdapter(IntegrationAdapter):
    """Adapter between a multimap and a long-form pandas DataFrame."""

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        map_kind: MapKind = MapKind.HASHMAP,
        collection_kind: CollectionKind = CollectionKind.LIST,
    ) -> None:
        super().__init__(correlation_id)
        self.map_kind = map_kind
        self.collection_kind = collection_kind

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="pandas",
            version="1.0.0",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            description="Multimap to/from a DataFrame with key and value columns"
        )

    def is_available(self) -> bool:
        try:
            import pandas  # noqa: F401
            return True
        except ImportError:
            return False

    def to_target(self, result: MultimapResult) -> ConversionResult:
        """Convert a multimap to a DataFrame with one row per value.

        Rows follow the iteration order of the mapping and of each group.
        """
        start_time = time.time()
        try:
            import pandas as pd

            rows = [
                {"key": key, "value": value}
                for key, group in result.mapping.items()
                for value in group
            ]
            df = pd.DataFrame(rows, columns=["key", "value"])
            processing_time = (time.time() - start_time) * MS_PER_SECOND
            return ConversionResult(
                success=True,
                converted_data=df,
                original_data=result,
                conversion_time_ms=processing_time,
                metadata={
                    "row_count": len(df),
                    "key_count": len(result.mapping),
                    "map_kind": result.map_kind.name,
                    "collection_kind": result.collection_kind.name,
                }
            )
        except ImportError as e:
            return self._create_error_result(
                f"pandas is not installed: {e}",
                result,
                (time.time() - start_time) * MS_PER_SECOND
            )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Group a DataFrame's ``key``/``value`` rows into a multimap."""
        start_time = time.time()
        try:
            import pandas as pd
        except ImportError as e:
            return self._create_error_result(
                f"pandas is not installed: {e}",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND
            )

        if not isinstance(target_data, pd.DataFrame):
            return self._create_error_result(
                "Target data is not a pandas DataFrame",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND
            )
        missing = [col for col in ("key", "value") if col not in target_data.columns]
        if missing:
            return self._create_error_result(
                f"DataFrame is missing columns: {', '.join(missing)}",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND
            )

        kinds = ResolvedKinds(
            self.map_kind, self.collection_kind, KindSource.OVERRIDE, KindSource.OVERRIDE
        )
        assembler = ResultAssembler(kinds)
        try:
            for key, value in zip(target_data["key"].tolist(), target_data["value"].tolist()):
                assembler.insert(key, value)
        except TypeError as e:
            return self._create_error_result(
                f"Cannot group DataFrame rows: {e}",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND
            )

        multimap = MultimapResult(
            mapping=assembler.mapping,
            map_kind=self.map_kind,
            collection_kind=self.collection_kind,
            correlation_id=self.correlation_id,
        )
        multimap.statistics.entries_seen = len(target_data)
        multimap.statistics.entries_inserted = len(target_data)
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return ConversionResult(
            success=True,
            converted_data=multimap,
            original_data=target_data,
            conversion_time_ms=processing_time,
            metadata={"row_count": len(target_data), "key_count": len(assembler.mapping)}
        )


class LxmlAdapter(IntegrationAdapter):
    """Adapter between a multimap and an lxml ``<map>`` element."""

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        config: Optional[ParserConfig] = None,
    ) -> None:
        super().__init__(correlation_id)
        self.config = config or ParserConfig()

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            description="Multimap to/from an lxml element in the attribute entry form"
        )

    def is_available(self) -> bool:
        try:
            import lxml.etree  # noqa: F401
            return True
        except ImportError:
            return False

    def to_target(self, result: MultimapResult) -> ConversionResult:
        """Write the multimap as ``<map type=".." collection=".."><entry .../></map>``."""
        start_time = time.time()
        from lxml import etree

        root = etree.Element(
            self.config.root_tag,
            type=result.map_kind.name,
            collection=result.collection_kind.name,
        )
        for key, group in result.mapping.items():
            for value in group:
                etree.SubElement(
                    root,
                    self.config.entry_tag,
                    key=_format_token(key),
                    value=_format_token(value),
                )

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return ConversionResult(
            success=True,
            converted_data=root,
            original_data=result,
            conversion_time_ms=processing_time,
            metadata={"entry_count": len(root)}
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Serialise an lxml element and parse it with the adapter's config."""
        start_time = time.time()
        from lxml import etree

        from xml_multimap_parser.api.parser import parse_with_diagnostics

        if not isinstance(target_data, etree._Element):
            return self._create_error_result(
                "Target data is not an lxml element",
                target_data,
                (time.time() - start_time) * MS_PER_SECOND
            )

        multimap = parse_with_diagnostics(
            etree.tostring(target_data), self.config, self.correlation_id
        )
        processing_time = (time.time() - start_time) * MS_PER_SECOND
        return ConversionResult(
            success=multimap.success,
            converted_data=multimap,
            original_data=target_data,
            conversion_time_ms=processing_time,
            errors=[diag.message for diag in multimap.diagnostics if diag.severity in (
                DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL
            )],
            diagnostics=list(multimap.diagnostics),
        )


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        with self._lock:
            self._adapters[adapter_class().metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None
    ) -> Optional[IntegrationAdapter]:
        """Get a fresh adapter instance, or None if unknown or unavailable."""
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        instance = adapter_class(correlation_id)
        return instance if instance.is_available() else None

    def list_available_adapters(self) -> List[AdapterMetadata]:
        with self._lock:
            classes = list(self._adapters.values())
        available = []
        for adapter_class in classes:
            instance = adapter_class()
            if instance.is_available():
                available.append(instance.metadata)
        return available


# Global adapter registry instance
_adapter_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally."""
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance by name."""
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List all registered adapters whose library is importable."""
    return _adapter_registry.list_available_adapters()


register_adapter(LxmlAdapter)
register_adapter(PandasAdapter)
