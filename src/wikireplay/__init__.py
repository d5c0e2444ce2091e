"""wikireplay - replay wiki page revisions into a git repository."""

from wikireplay.core.engine import (
    Notice,
    NoticeKind,
    ReplayEngine,
    ReplayOptions,
    ReplayResult,
    replay,
)
from wikireplay.core.errors import (
    IntegrityError,
    RenderError,
    ReplayCancelled,
    ReplayError,
    SourceError,
    StartupError,
)
from wikireplay.core.slugs import display, slugify
from wikireplay.core.types import PathKey, RevisionRecord

__all__ = [
    "IntegrityError",
    "Notice",
    "NoticeKind",
    "PathKey",
    "RenderError",
    "ReplayCancelled",
    "ReplayEngine",
    "ReplayError",
    "ReplayOptions",
    "ReplayResult",
    "RevisionRecord",
    "SourceError",
    "StartupError",
    "display",
    "replay",
    "slugify",
]
