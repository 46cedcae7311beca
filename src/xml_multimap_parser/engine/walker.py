"""Document walker state machine.

Drives one forward pass over the markup event stream:

    SEEKING_ROOT --<map> at depth 0--> IN_ROOT --</map>--> DONE

Reaching the end of the document while seeking the root, or finding the root
tag below the outermost element, aborts the parse in both error modes. Every
other violation goes through the ``ErrorPolicy`` of the parse.
"""

import time
from enum import Enum, auto
from typing import Iterator, Optional

from xml_multimap_parser.engine.entries import (
    ElementNode,
    EntryExtractor,
    collect_subtree,
    skip_subtree,
)
from xml_multimap_parser.engine.overrides import ResolvedKinds, resolve_kinds
from xml_multimap_parser.engine.policy import (
    UNIT_ATTRIBUTE,
    UNIT_ENTRY,
    UNIT_SUBTREE,
    AbortParse,
    ErrorPolicy,
    ResultAssembler,
)
from xml_multimap_parser.shared.config import CollectionKind, MapKind, ParserConfig
from xml_multimap_parser.shared.logging import get_logger
from xml_multimap_parser.shared.result import DiagnosticSeverity, MultimapResult
from xml_multimap_parser.tokenization.events import (
    DocumentContent,
    DocumentSyntaxError,
    EventType,
    MarkupEvent,
    tokenize_document,
)

ATTRIBUTE_MAP_TYPE = "type"
ATTRIBUTE_MAP_COLLECTION = "collection"

MS_PER_SECOND = 1000


class WalkerState(Enum):
    """States of the document walker."""

    SEEKING_ROOT = auto()   # Scanning for the root tag
    IN_ROOT = auto()        # Reading entries of the root tag
    DONE = auto()           # Root tag closed


class DocumentWalker:
    """Parses one document into a multimap according to a ``ParserConfig``.

    A walker holds no state between calls to ``walk``; each call builds its
    own policy, assembler and result, so one instance may be shared between
    threads.
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "document_walker")

    def walk(self, content: DocumentContent) -> MultimapResult:
        """Parse ``content`` and return the populated or aborted result.

        Never raises for problems in the document itself.
        """
        start_time = time.time()
        config = self.config
        kinds = resolve_kinds(config.type_override)
        result = MultimapResult(
            mapping=None,
            map_kind=kinds.map_kind,
            collection_kind=kinds.collection_kind,
            correlation_id=self.correlation_id,
        )
        policy = ErrorPolicy(
            config.continue_on_error, result, self.logger.for_component("error_policy")
        )
        run = _WalkRun(config, policy, result, kinds, self.logger)

        self.logger.info(
            "Starting multimap parse",
            extra={
                "continue_on_error": config.continue_on_error,
                "has_type_override": not config.type_override.is_empty,
            },
        )

        try:
            run.run(tokenize_document(content))
            result.mapping = run.assembler.mapping
        except DocumentSyntaxError as e:
            policy.violation_count += 1
            result.add_diagnostic(
                DiagnosticSeverity.CRITICAL,
                f"Malformed document: {e}",
                "document_walker",
                position={"line": e.line, "column": e.column} if e.line else None,
            )
            result.mapping = run.assembler.empty()
            result.aborted = True
        except AbortParse:
            result.mapping = run.assembler.empty()
            result.aborted = True

        result.map_kind = run.kinds.map_kind
        result.collection_kind = run.kinds.collection_kind
        result.success = policy.violation_count == 0
        result.statistics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND

        self.logger.info(
            "Multimap parse completed",
            extra={
                "aborted": result.aborted,
                "key_count": len(result.mapping),
                "entries_inserted": result.statistics.entries_inserted,
                "violations": policy.violation_count,
                "map_kind": result.map_kind.name,
                "collection_kind": result.collection_kind.name,
                "processing_time_ms": result.statistics.processing_time_ms,
            },
        )
        return result


class _WalkRun:
    """Mutable state of a single walk."""

    def __init__(self, config, policy, result, kinds: ResolvedKinds, logger) -> None:
        self.config = config
        self.policy = policy
        self.result = result
        self.kinds = kinds
        self.logger = logger
        self.state = WalkerState.SEEKING_ROOT
        self.assembler = ResultAssembler(kinds)
        self.extractor = EntryExtractor(policy)

    def run(self, events: Iterator[MarkupEvent]) -> None:
        for event in events:
            if self.state is WalkerState.SEEKING_ROOT:
                self._seek_root(event)
            elif self.state is WalkerState.IN_ROOT:
                self._in_root(event, events)
            elif event.type is EventType.END_DOCUMENT:
                return

    def _transition(self, state: WalkerState) -> None:
        self.logger.debug(
            "Walker state transition",
            extra={"from_state": self.state.name, "to_state": state.name},
        )
        self.state = state

    def _seek_root(self, event: MarkupEvent) -> None:
        root_tag = self.config.root_tag
        if event.type is EventType.END_DOCUMENT:
            self.policy.fatal(
                f"Root tag <{root_tag}> not found", "document_walker"
            )
        if event.type is not EventType.START_TAG or not event.matches(root_tag):
            return
        if event.depth != 0:
            self.policy.fatal(
                f"Root tag <{root_tag}> is not the outermost element",
                "document_walker",
                event.position,
            )
        self._read_root(event)
        self._transition(WalkerState.IN_ROOT)

    def _read_root(self, event: MarkupEvent) -> None:
        """Resolve container kinds from the root tag, then report bad attributes.

        Kinds are fixed before any violation is raised so an abort still
        returns a container of the declared kind.
        """
        declared_map: Optional[MapKind] = None
        declared_collection: Optional[CollectionKind] = None
        problems = []
        for name, value in event.attributes:
            lowered = name.lower()
            if lowered == ATTRIBUTE_MAP_TYPE:
                try:
                    declared_map = MapKind.from_token(value)
                except ValueError as e:
                    problems.append((str(e), name))
            elif lowered == ATTRIBUTE_MAP_COLLECTION:
                try:
                    declared_collection = CollectionKind.from_token(value)
                except ValueError as e:
                    problems.append((str(e), name))
            else:
                problems.append((f"Unknown attribute '{name}' on <{event.name}>", name))

        self.kinds = resolve_kinds(
            self.config.type_override, declared_map, declared_collection
        )
        self.assembler = ResultAssembler(self.kinds)
        self.logger.debug(
            "Container kinds resolved",
            extra={
                "map_kind": self.kinds.map_kind.name,
                "map_source": self.kinds.map_source.name,
                "collection_kind": self.kinds.collection_kind.name,
                "collection_source": self.kinds.collection_source.name,
            },
        )

        for message, name in problems:
            self.policy.violation(
                message,
                "document_walker",
                UNIT_ATTRIBUTE,
                event.position,
                details={"attribute": name},
            )

    def _in_root(self, event: MarkupEvent, events: Iterator[MarkupEvent]) -> None:
        if event.type is EventType.START_TAG:
            if event.matches(self.config.entry_tag):
                self._process_entry(collect_subtree(event, events))
            else:
                self.policy.violation(
                    f"Unknown tag <{event.name}> inside <{self.config.root_tag}>",
                    "document_walker",
                    UNIT_SUBTREE,
                    event.position,
                    details={"tag": event.name},
                )
                skip_subtree(event, events)
        elif event.type is EventType.END_TAG:
            self._transition(WalkerState.DONE)
        elif event.type is EventType.TEXT and not event.is_whitespace:
            self.logger.debug(
                "Ignoring text inside root tag", extra={"position": event.position}
            )

    def _process_entry(self, node: ElementNode) -> None:
        stats = self.result.statistics
        stats.entries_seen += 1

        raw = self.extractor.extract(node)
        if raw is None:
            stats.entries_skipped += 1
            return

        key = self.policy.convert(
            self.config.key_conversion, raw.key, "key", raw.position
        )
        if key.is_failure:
            stats.entries_skipped += 1
            return
        value = self.policy.convert(
            self.config.value_conversion, raw.value, "value", raw.position
        )
        if value.is_failure:
            stats.entries_skipped += 1
            return

        try:
            self.assembler.insert(key.value, value.value)
        except TypeError as e:
            self.policy.violation(
                f"Cannot store entry with key {key.value!r}: {e}",
                "result_assembler",
                UNIT_ENTRY,
                raw.position,
            )
            stats.entries_skipped += 1
            return
        stats.entries_inserted += 1
