"""Tests for commit metadata and the commit builder."""

from datetime import datetime

import pytest
from helpers import RecordFactory
from wikireplay.core.commits import CommitBuilder, CommitMetadata, resolve_message
from wikireplay.core.types import PathKey


class TestResolveMessage:
    """Tests for resolve_message()."""

    def test__explicit_message__kept(self, make_record: RecordFactory) -> None:
        """Use the revision's own message when present."""
        record = make_record("Page", message="Fix typo", minor=True)

        assert resolve_message(record, PathKey("page")) == "Fix typo"

    @pytest.mark.parametrize("message", [None, "", "   "])
    def test__blank_message_minor__minor_edit(
        self, make_record: RecordFactory, message: str | None
    ) -> None:
        """Blank message on a minor edit becomes "Minor edit"."""
        record = make_record("Page", message=message, minor=True)

        assert resolve_message(record, PathKey("page")) == "Minor edit"

    @pytest.mark.parametrize("message", [None, "", "   "])
    def test__blank_message_major__modified_path(
        self, make_record: RecordFactory, message: str | None
    ) -> None:
        """Blank message on a regular edit names the modified path."""
        record = make_record("Welcome Page", message=message, minor=False)

        assert resolve_message(record, PathKey("welcome-page")) == "Modified welcome-page"

    def test__deletion__resolves_the_same_way(self, make_record: RecordFactory) -> None:
        """Message fallback does not depend on the revision's content."""
        record = make_record("Page", None, minor=True)

        assert resolve_message(record, PathKey("page")) == "Minor edit"


class TestCommitMetadata:
    """Tests for CommitMetadata.for_revision()."""

    def test__revision__copies_author_and_date(self, make_record: RecordFactory) -> None:
        """Take author identity and timestamp from the revision."""
        record = make_record("Page", author_email="bob@x", author_name="Bob")

        metadata = CommitMetadata.for_revision(record, PathKey("page"), parent="abc")

        assert metadata.author_email == "bob@x"
        assert metadata.author_name == "Bob"
        assert metadata.timestamp == record.timestamp
        assert metadata.parent == "abc"
        assert metadata.message == "Modified page"


class FakeCommitStore:
    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    def create_commit(
        self,
        tree: str,
        message: str,
        *,
        author_name: str,
        author_email: str,
        timestamp: datetime,
        parent: str | None,
    ) -> str:
        self.calls.append(
            {
                "tree": tree,
                "message": message,
                "author_name": author_name,
                "author_email": author_email,
                "timestamp": timestamp,
                "parent": parent,
            }
        )
        return f"{len(self.calls):040x}"


class TestCommitBuilder:
    """Tests for CommitBuilder.commit()."""

    def test__commit__passes_metadata_to_store(self, make_record: RecordFactory) -> None:
        """Forward tree and metadata unchanged."""
        store = FakeCommitStore()
        builder = CommitBuilder(store)
        record = make_record("Page", message="Create")
        metadata = CommitMetadata.for_revision(record, PathKey("page"), parent=None)

        commit_id = builder.commit("tree-1", metadata)

        assert commit_id == f"{1:040x}"
        assert store.calls == [
            {
                "tree": "tree-1",
                "message": "Create",
                "author_name": "Alice",
                "author_email": "a@x",
                "timestamp": record.timestamp,
                "parent": None,
            }
        ]
