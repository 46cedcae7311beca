"""Markup event stream for the multimap document walker.

The document is parsed with lxml and replayed as a flat, forward-only stream
of start-tag, text, end-tag and end-document events, the same shape a pull
parser produces. Tag and attribute names are reported as local names with
any namespace stripped; attribute order follows the document.
"""

import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Iterator, List, Optional, Tuple, Union

from lxml import etree

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")


class EventType(Enum):
    """Kinds of events emitted for a document."""

    START_TAG = auto()      # Element opened; carries name and attributes
    END_TAG = auto()        # Element closed
    TEXT = auto()           # Character content between tags
    END_DOCUMENT = auto()   # No more events


@dataclass
class MarkupEvent:
    """Single event of the document stream.

    ``depth`` is the nesting level of the element the event belongs to; the
    outermost element has depth 0 and text directly inside it has depth 1.
    """

    type: EventType
    name: str = ""
    attributes: List[Tuple[str, str]] = field(default_factory=list)
    text: str = ""
    depth: int = 0
    line: Optional[int] = None

    @property
    def is_whitespace(self) -> bool:
        """Check if this is a text event holding only whitespace."""
        return self.type is EventType.TEXT and not self.text.strip()

    def matches(self, name: str) -> bool:
        """Case-insensitive tag name comparison."""
        return self.name.lower() == name.lower()

    @property
    def position(self) -> dict:
        position = {"depth": self.depth}
        if self.line is not None:
            position["line"] = self.line
        return position


class DocumentSyntaxError(Exception):
    """Raised when the document is not well-formed markup."""

    def __init__(
        self, message: str, line: Optional[int] = None, column: Optional[int] = None
    ) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


DocumentContent = Union[str, bytes]


def _local_name(name: str) -> str:
    return etree.QName(name).localname


def load_document(content: DocumentContent) -> Optional[etree._Element]:
    """Parse ``content`` into an lxml element, or None for an empty document.

    Raises:
        DocumentSyntaxError: if the content is not well-formed
    """
    if isinstance(content, str):
        # lxml refuses str input that carries an encoding declaration
        content = _XML_DECLARATION.sub("", content, count=1)
        if not content.strip():
            return None
    elif not content.strip():
        return None

    parser = etree.XMLParser(
        remove_comments=True,
        remove_pis=True,
        resolve_entities=False,
        no_network=True,
    )
    try:
        return etree.fromstring(content, parser=parser)
    except etree.XMLSyntaxError as e:
        line, column = getattr(e, "position", (None, None))
        raise DocumentSyntaxError(str(e), line=line, column=column) from e


def iter_events(root: Optional[etree._Element]) -> Iterator[MarkupEvent]:
    """Replay a parsed document as a stream of markup events.

    Always finishes with a single END_DOCUMENT event.
    """
    if root is None:
        yield MarkupEvent(EventType.END_DOCUMENT)
        return

    depth = -1
    for action, element in etree.iterwalk(root, events=("start", "end")):
        if not isinstance(element.tag, str):
            # Entity references left unresolved; only their tail is content
            if action == "end" and element.tail:
                yield MarkupEvent(EventType.TEXT, text=element.tail, depth=depth + 1)
            continue

        if action == "start":
            depth += 1
            yield MarkupEvent(
                EventType.START_TAG,
                name=_local_name(element.tag),
                attributes=[
                    (_local_name(name), value)
                    for name, value in element.attrib.items()
                ],
                depth=depth,
                line=element.sourceline,
            )
            if element.text:
                yield MarkupEvent(
                    EventType.TEXT,
                    text=element.text,
                    depth=depth + 1,
                    line=element.sourceline,
                )
        else:
            yield MarkupEvent(
                EventType.END_TAG,
                name=_local_name(element.tag),
                depth=depth,
                line=element.sourceline,
            )
            depth -= 1
            if element.tail and element is not root:
                yield MarkupEvent(EventType.TEXT, text=element.tail, depth=depth + 1)

    yield MarkupEvent(EventType.END_DOCUMENT)


def tokenize_document(content: DocumentContent) -> Iterator[MarkupEvent]:
    """Parse ``content`` and return its event stream.

    Raises:
        DocumentSyntaxError: if the content is not well-formed
    """
    return iter_events(load_document(content))
