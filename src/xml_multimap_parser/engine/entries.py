"""Entry extraction for the three entry syntaxes.

An ``entry`` element yields one raw key/value token pair in one of three
forms, checked in this order:

* attribute form: ``<entry key="K" value="V"/>``; child tags are ignored
* key-attribute form: ``<entry key="K">V</entry>``
* tag form: ``<entry><key>K</key><value>V</value></entry>``
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, List, Optional, Tuple

from xml_multimap_parser.engine.policy import (
    UNIT_ATTRIBUTE,
    UNIT_ENTRY,
    UNIT_SUBTREE,
    ErrorPolicy,
)
from xml_multimap_parser.tokenization.events import EventType, MarkupEvent

ATTRIBUTE_KEY = "key"
ATTRIBUTE_VALUE = "value"
TAG_KEY = "key"
TAG_VALUE = "value"

_COMPONENT = "entry_extractor"


class EntryForm(Enum):
    """Syntax an entry was written in."""

    ATTRIBUTES = auto()
    KEY_ATTRIBUTE = auto()
    TAGS = auto()


@dataclass
class ElementNode:
    """Element subtree collected from the event stream."""

    name: str
    attributes: List[Tuple[str, str]] = field(default_factory=list)
    text_parts: List[str] = field(default_factory=list)
    children: List["ElementNode"] = field(default_factory=list)
    line: Optional[int] = None
    depth: int = 0

    @property
    def text(self) -> str:
        """Direct character content, children excluded."""
        return "".join(self.text_parts)

    @property
    def position(self) -> dict:
        position = {"depth": self.depth}
        if self.line is not None:
            position["line"] = self.line
        return position

    def matches(self, name: str) -> bool:
        return self.name.lower() == name.lower()


@dataclass
class RawEntry:
    """Unconverted key and value tokens of one entry."""

    key: str
    value: str
    form: EntryForm
    line: Optional[int] = None
    depth: int = 0

    @property
    def position(self) -> dict:
        position = {"depth": self.depth}
        if self.line is not None:
            position["line"] = self.line
        return position


def collect_subtree(start: MarkupEvent, events: Iterator[MarkupEvent]) -> ElementNode:
    """Consume events up to the END_TAG matching ``start`` and build its subtree."""
    root = ElementNode(
        name=start.name,
        attributes=list(start.attributes),
        line=start.line,
        depth=start.depth,
    )
    stack = [root]
    for event in events:
        if event.type is EventType.START_TAG:
            node = ElementNode(
                name=event.name,
                attributes=list(event.attributes),
                line=event.line,
                depth=event.depth,
            )
            stack[-1].children.append(node)
            stack.append(node)
        elif event.type is EventType.TEXT:
            stack[-1].text_parts.append(event.text)
        elif event.type is EventType.END_TAG:
            stack.pop()
            if not stack:
                return root
        else:
            break
    return root


def skip_subtree(start: MarkupEvent, events: Iterator[MarkupEvent]) -> None:
    """Consume events up to the END_TAG matching ``start``."""
    for event in events:
        if event.type is EventType.END_TAG and event.depth == start.depth:
            return
        if event.type is EventType.END_DOCUMENT:
            return


class EntryExtractor:
    """Turns one ``entry`` element into a ``RawEntry``."""

    def __init__(self, policy: ErrorPolicy) -> None:
        self.policy = policy

    def extract(self, node: ElementNode) -> Optional[RawEntry]:
        """Extract the entry, or return None when continue mode skipped it.

        Raises:
            AbortParse: on the first violation in fail-fast mode
        """
        key_attr: Optional[str] = None
        value_attr: Optional[str] = None
        for name, value in node.attributes:
            lowered = name.lower()
            if lowered == ATTRIBUTE_KEY:
                key_attr = value
            elif lowered == ATTRIBUTE_VALUE:
                value_attr = value
            else:
                self._unknown_attribute(node, name)

        if key_attr is not None and value_attr is not None:
            return self._entry(node, key_attr, value_attr, EntryForm.ATTRIBUTES)

        if key_attr is not None:
            if node.children:
                self.policy.violation(
                    f"<{node.name}> with a key attribute cannot contain child tags",
                    _COMPONENT,
                    UNIT_ENTRY,
                    node.position,
                    details={"children": [child.name for child in node.children]},
                )
                return None
            return self._entry(node, key_attr, node.text, EntryForm.KEY_ATTRIBUTE)

        if value_attr is not None:
            self.policy.violation(
                f"<{node.name}> has a value attribute but no key attribute",
                _COMPONENT,
                UNIT_ENTRY,
                node.position,
            )
            return None

        return self._extract_tag_form(node)

    def _extract_tag_form(self, node: ElementNode) -> Optional[RawEntry]:
        keys: List[ElementNode] = []
        values: List[ElementNode] = []
        for child in node.children:
            if child.matches(TAG_KEY):
                keys.append(child)
            elif child.matches(TAG_VALUE):
                values.append(child)
            else:
                self.policy.violation(
                    f"Unknown tag <{child.name}> inside <{node.name}>",
                    _COMPONENT,
                    UNIT_SUBTREE,
                    child.position,
                    details={"tag": child.name},
                )

        if len(keys) != 1 or len(values) != 1:
            self.policy.violation(
                f"<{node.name}> needs exactly one <{TAG_KEY}> and one "
                f"<{TAG_VALUE}> tag, found {len(keys)} and {len(values)}",
                _COMPONENT,
                UNIT_ENTRY,
                node.position,
                details={"key_tags": len(keys), "value_tags": len(values)},
            )
            return None

        key_node, value_node = keys[0], values[0]
        for part in (key_node, value_node):
            for name, _ in part.attributes:
                self._unknown_attribute(part, name)
            for grandchild in part.children:
                self.policy.violation(
                    f"Unknown tag <{grandchild.name}> inside <{part.name}>",
                    _COMPONENT,
                    UNIT_SUBTREE,
                    grandchild.position,
                    details={"tag": grandchild.name},
                )

        return self._entry(node, key_node.text, value_node.text, EntryForm.TAGS)

    def _unknown_attribute(self, node: ElementNode, name: str) -> None:
        self.policy.violation(
            f"Unknown attribute '{name}' on <{node.name}>",
            _COMPONENT,
            UNIT_ATTRIBUTE,
            node.position,
            details={"attribute": name},
        )

    @staticmethod
    def _entry(node: ElementNode, key: str, value: str, form: EntryForm) -> RawEntry:
        return RawEntry(key, value, form, line=node.line, depth=node.depth)
