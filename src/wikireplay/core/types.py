"""Core type definitions."""

from dataclasses import dataclass
from datetime import datetime
from typing import NewType

# Slug derived from a page title (e.g., "welcome-page")
# Distinct from tree paths, which carry the renderer's file suffix
PathKey = NewType("PathKey", str)


@dataclass(frozen=True)
class RevisionRecord:
    """One historical edit of a wiki page.

    Blank or missing content marks the page as deleted by this revision.
    """

    title: str
    content: bytes | None
    message: str | None
    is_minor: bool
    author_email: str
    author_name: str
    timestamp: datetime

    @property
    def is_deletion(self) -> bool:
        """Whether the revision removes the page."""
        return self.content is None or not self.content.strip()
