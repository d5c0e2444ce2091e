"""Markup renderers for wikireplay.

This package converts MediaWiki markup to the output dialects stored in
the replayed repository.
"""

from .converter import WikitextConverter
from .renderers import (
    ConfluenceRenderer,
    HtmlRenderer,
    MarkdownRenderer,
    Renderer,
    get_renderer,
)

__all__ = [
    "ConfluenceRenderer",
    "HtmlRenderer",
    "MarkdownRenderer",
    "Renderer",
    "WikitextConverter",
    "get_renderer",
]
