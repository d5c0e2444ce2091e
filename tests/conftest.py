"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from helpers import RecordFactory
from wikireplay.core.types import RevisionRecord
from wikireplay.render import MarkdownRenderer

T0 = datetime(2014, 3, 1, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def make_record() -> RecordFactory:
    """Build revision records with sensible defaults.

    Timestamps advance one minute per record unless given explicitly.
    Pass content=None for a deletion.
    """
    counter = {"n": 0}

    def factory(
        title: str,
        content: str | bytes | None = "Hello",
        *,
        message: str | None = None,
        minor: bool = False,
        author_email: str = "a@x",
        author_name: str = "Alice",
        timestamp: datetime | None = None,
    ) -> RevisionRecord:
        if timestamp is None:
            timestamp = T0 + timedelta(minutes=counter["n"])
        counter["n"] += 1
        if isinstance(content, str):
            content = content.encode("utf-8")
        return RevisionRecord(
            title=title,
            content=content,
            message=message,
            is_minor=minor,
            author_email=author_email,
            author_name=author_name,
            timestamp=timestamp,
        )

    return factory


@pytest.fixture
def renderer() -> MarkdownRenderer:
    return MarkdownRenderer()


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    """Path of a not-yet-existing destination repository."""
    return tmp_path / "wiki.git"
