"""MediaWiki markup to Markdown converter.

Handles the constructs common in small wikis: headings, emphasis, lists,
indentation, internal and external links, redirects. Templates and magic
words are dropped. Anything else passes through as plain text.
"""

import logging
import re

from wikireplay.core.slugs import display, slugify

logger = logging.getLogger(__name__)

REDIRECT_RE = re.compile(r"^\s*#redirect\s*:?\s*\[\[([^\]]+)]]", re.IGNORECASE)
TEMPLATE_RE = re.compile(r"{{[^{}]*}}")
MAGIC_WORD_RE = re.compile(r"__[A-Z]+__")
HEADING_RE = re.compile(r"^(={1,6})\s*(.+?)\s*\1\s*$")
LIST_ITEM_RE = re.compile(r"^([*#]+)\s*(.*)$")
INDENT_RE = re.compile(r"^:+\s*")
RULE_RE = re.compile(r"^-{4,}\s*$")
LINK_RE = re.compile(r"\[\[([^\]|]+?)(?:\|([^\]]*))?]]")
EXTERNAL_LINK_RE = re.compile(r"\[(https?://[^\s\]]+)(?:\s+([^\]]+))?]")
BOLD_ITALIC_RE = re.compile(r"'''''(.+?)'''''")
BOLD_RE = re.compile(r"'''(.+?)'''")
ITALIC_RE = re.compile(r"''(.+?)''")

INDENT = " " * 4
MAX_TEMPLATE_DEPTH = 10


def link_target(target: str, link_suffix: str = ".html") -> str:
    """Resolve a wikilink target to a relative page URL.

    The namespace prefix and any section fragment are dropped
    ("Help:Editing#Tables" -> "editing.html").
    """
    page = target.split("#", 1)[0]
    page = page.rpartition(":")[2]
    return f"{slugify(page)}{link_suffix}"


def link_label(target: str, label: str | None) -> str:
    """Pick the visible text of a wikilink.

    Piped labels win; for nested pipes the last segment is used.
    """
    if label:
        return label.rpartition("|")[2].strip()
    return display(target)


class WikitextConverter:
    """Convert MediaWiki markup to Markdown."""

    def __init__(self, link_suffix: str = ".html") -> None:
        """Initialize the converter.

        Args:
            link_suffix: Extension appended to internal link targets
        """
        self.link_suffix = link_suffix

    def convert(self, wikitext: str) -> str:
        """Convert MediaWiki markup to Markdown.

        Args:
            wikitext: MediaWiki source text

        Returns:
            Markdown text
        """
        text = wikitext.replace("\r\n", "\n").replace("\r", "\n")

        redirect = REDIRECT_RE.match(text)
        if redirect:
            target = redirect.group(1).strip()
            return f"Redirect to {self._internal_link(target, None)}\n"

        text = self._strip_templates(text)
        text = MAGIC_WORD_RE.sub("", text)

        lines = [self._convert_line(line) for line in text.split("\n")]
        markdown = "\n".join(lines).strip("\n")
        logger.debug(f"Converted {len(wikitext)} characters of wikitext to {len(markdown)} of markdown")
        return markdown + "\n" if markdown else ""

    def _strip_templates(self, text: str) -> str:
        """Remove {{...}} transclusions, innermost first."""
        for _ in range(MAX_TEMPLATE_DEPTH):
            stripped = TEMPLATE_RE.sub("", text)
            if stripped == text:
                return stripped
            text = stripped
        logger.warning("Template nesting too deep, leaving remainder in place")
        return text

    def _convert_line(self, line: str) -> str:
        heading = HEADING_RE.match(line)
        if heading:
            level = len(heading.group(1))
            return f"{'#' * level} {self.inline(heading.group(2))}"

        item = LIST_ITEM_RE.match(line)
        if item:
            markers = item.group(1)
            bullet = "1." if markers[-1] == "#" else "-"
            nesting = "  " * (len(markers) - 1)
            return f"{nesting}{bullet} {self.inline(item.group(2))}"

        if RULE_RE.match(line):
            return "* * *"

        indent = INDENT_RE.match(line)
        if indent:
            return INDENT + self.inline(line[indent.end():])

        return self.inline(line)

    def _internal_link(self, target: str, label: str | None) -> str:
        return f"[{link_label(target, label)}]({link_target(target, self.link_suffix)})"

    def inline(self, text: str) -> str:
        """Convert inline markup (links and emphasis) in one line."""
        text = LINK_RE.sub(
            lambda m: self._internal_link(m.group(1).strip(), m.group(2)), text
        )
        text = EXTERNAL_LINK_RE.sub(
            lambda m: f"[{(m.group(2) or m.group(1)).strip()}]({m.group(1)})", text
        )
        text = BOLD_ITALIC_RE.sub(r"***\1***", text)
        text = BOLD_RE.sub(r"**\1**", text)
        text = ITALIC_RE.sub(r"*\1*", text)
        return text
