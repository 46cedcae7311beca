"""Parsing and assembly engine for multimap documents.

Key Components:
    DocumentWalker: State machine driving one parse over the event stream
    EntryExtractor: Recognises attribute, key-attribute and tag entry forms
    ErrorPolicy: Fail-fast / continue-on-error checkpoint for every violation
    ResultAssembler: Groups converted values by key
    resolve_kinds: Override > document > default container-kind precedence
"""

from .entries import EntryExtractor, EntryForm, RawEntry
from .overrides import KindSource, ResolvedKinds, resolve_kinds
from .policy import AbortParse, ErrorPolicy, ResultAssembler
from .walker import DocumentWalker, WalkerState

__all__ = [
    "AbortParse",
    "DocumentWalker",
    "EntryExtractor",
    "EntryForm",
    "ErrorPolicy",
    "KindSource",
    "RawEntry",
    "ResolvedKinds",
    "ResultAssembler",
    "WalkerState",
    "resolve_kinds",
]
