"""Command-line interface module for the XML multimap parser.

This module provides the ``xml-multimap`` tool with ``parse`` and ``validate``
subcommands.
"""

from .main import main

__all__ = ["main"]
