"""Markup event stream consumed by the document walker.

Key Components:
    MarkupEvent: One start-tag, end-tag, text or end-document event
    EventType: Enumeration of event kinds
    tokenize_document: Parse a document with lxml and replay it as events
    DocumentSyntaxError: Raised for content that is not well-formed markup
"""

from .events import (
    DocumentSyntaxError,
    EventType,
    MarkupEvent,
    iter_events,
    load_document,
    tokenize_document,
)

__all__ = [
    "DocumentSyntaxError",
    "EventType",
    "MarkupEvent",
    "iter_events",
    "load_document",
    "tokenize_document",
]
