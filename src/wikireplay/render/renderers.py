"""Pluggable content renderers.

Each renderer turns one revision's raw MediaWiki markup into the bytes
stored in the tree. Renderers are stateless between calls, so one
instance can serve the whole replay (and a render-ahead worker thread).
"""

import logging
from typing import Protocol

import mistune
from md2cf.confluence_renderer import ConfluenceRenderer as MistuneConfluenceRenderer

from wikireplay.core.errors import RenderError
from wikireplay.render.converter import WikitextConverter

logger = logging.getLogger(__name__)


class Renderer(Protocol):
    """Contract between the replay engine and a markup renderer."""

    @property
    def name(self) -> str: ...

    @property
    def suffix(self) -> str: ...

    @property
    def link_suffix(self) -> str: ...

    def render(self, markup: bytes) -> bytes: ...


def decode_markup(markup: bytes) -> str:
    """Decode raw markup as UTF-8.

    Raises:
        RenderError: If the bytes are not valid UTF-8
    """
    try:
        return markup.decode("utf-8")
    except UnicodeDecodeError as e:
        raise RenderError(f"Markup is not valid UTF-8: {e}") from e


class MarkdownRenderer:
    """Render MediaWiki markup to Markdown (for Jekyll)."""

    name = "markdown"
    suffix = ".markdown"
    link_suffix = ".html"

    def __init__(self) -> None:
        self._converter = WikitextConverter(link_suffix=self.link_suffix)

    def to_markdown(self, markup: bytes) -> str:
        """Decode and convert markup, without encoding the result."""
        return self._converter.convert(decode_markup(markup))

    def render(self, markup: bytes) -> bytes:
        """Render markup to Markdown bytes.

        Raises:
            RenderError: If the markup cannot be decoded
        """
        return self.to_markdown(markup).encode("utf-8")


class _MistuneRenderer(MarkdownRenderer):
    """Base for renderers that post-process the Markdown with mistune."""

    def __init__(self) -> None:
        super().__init__()
        self.markdown = mistune.Markdown(renderer=self._create_renderer())

    def _create_renderer(self) -> mistune.Renderer:
        raise NotImplementedError

    def render(self, markup: bytes) -> bytes:
        """Render markup through Markdown to the target format.

        Raises:
            RenderError: If decoding or Markdown rendering fails
        """
        markdown_text = self.to_markdown(markup)
        try:
            body = self.markdown(markdown_text)
        except Exception as e:
            raise RenderError(f"{self.name} rendering failed: {e}") from e
        logger.debug(f"Rendered {len(markdown_text)} characters of markdown to {len(body)} of {self.name}")
        return body.encode("utf-8")


class HtmlRenderer(_MistuneRenderer):
    """Render MediaWiki markup to HTML."""

    name = "html"
    suffix = ".html"

    def _create_renderer(self) -> mistune.Renderer:
        return mistune.Renderer()


class ConfluenceRenderer(_MistuneRenderer):
    """Render MediaWiki markup to Confluence storage format (XHTML)."""

    name = "confluence"
    suffix = ".xhtml"
    link_suffix = ".xhtml"

    def _create_renderer(self) -> mistune.Renderer:
        return MistuneConfluenceRenderer(use_xhtml=True)


RENDERERS: dict[str, type[MarkdownRenderer]] = {
    MarkdownRenderer.name: MarkdownRenderer,
    HtmlRenderer.name: HtmlRenderer,
    ConfluenceRenderer.name: ConfluenceRenderer,
}


def get_renderer(dialect: str) -> MarkdownRenderer:
    """Create the renderer for an output dialect.

    Args:
        dialect: One of "markdown", "html", "confluence"

    Raises:
        ValueError: If the dialect is unknown
    """
    try:
        renderer_cls = RENDERERS[dialect]
    except KeyError:
        choices = ", ".join(sorted(RENDERERS))
        raise ValueError(f"Unknown dialect {dialect!r} (expected one of: {choices})") from None
    return renderer_cls()
