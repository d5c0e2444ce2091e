"""Page title to path mapping.

Slugs are pure functions of the title. Two titles that normalize to the
same slug share one tree entry; the later revision wins.
"""

import re

from wikireplay.core.types import PathKey

SLUG_SEPARATOR = "-"

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")
_UNDERSCORES_RE = re.compile(r"_+")


def slugify(title: str) -> PathKey:
    """Map a page title to a filesystem-safe key.

    Args:
        title: Page title (e.g., "Category:Foo Bar")

    Returns:
        Lower-case key with runs of other characters collapsed into a single
        separator (e.g., "category-foo-bar"). Empty if the title has no
        ASCII letters or digits.
    """
    return PathKey(_NON_SLUG_RE.sub(SLUG_SEPARATOR, title.lower()).strip(SLUG_SEPARATOR))


def display(title: str) -> str:
    """Map a page title to its human-facing form ("Main_Page" -> "Main Page")."""
    return _UNDERSCORES_RE.sub(" ", title).strip()
