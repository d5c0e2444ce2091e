"""Commit construction for replayed revisions."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from wikireplay.core.types import PathKey, RevisionRecord

logger = logging.getLogger(__name__)

MINOR_EDIT_MESSAGE = "Minor edit"


class CommitStore(Protocol):
    """Persistence primitive needed to record a commit."""

    def create_commit(
        self,
        tree: str,
        message: str,
        *,
        author_name: str,
        author_email: str,
        timestamp: datetime,
        parent: str | None,
    ) -> str: ...


@dataclass(frozen=True)
class CommitMetadata:
    """Everything a commit records besides its tree."""

    message: str
    author_name: str
    author_email: str
    timestamp: datetime
    parent: str | None

    @classmethod
    def for_revision(
        cls, record: RevisionRecord, key: PathKey, parent: str | None
    ) -> "CommitMetadata":
        """Build metadata for a revision, resolving a blank message."""
        return cls(
            message=resolve_message(record, key),
            author_name=record.author_name,
            author_email=record.author_email,
            timestamp=record.timestamp,
            parent=parent,
        )


def resolve_message(record: RevisionRecord, key: PathKey) -> str:
    """Pick the commit message for a revision.

    Blank messages become "Minor edit" for minor edits and
    "Modified <key>" otherwise.
    """
    if record.message and record.message.strip():
        return record.message
    if record.is_minor:
        return MINOR_EDIT_MESSAGE
    return f"Modified {key}"


class CommitBuilder:
    """Turns tree snapshots into a linear chain of commits."""

    def __init__(self, store: CommitStore) -> None:
        self._store = store

    def commit(self, tree: str, metadata: CommitMetadata) -> str:
        """Record a commit of tree with metadata.

        Args:
            tree: Root tree id produced by TreeState.snapshot()
            metadata: Message, author, date and parent

        Returns:
            Id of the new commit
        """
        commit_id = self._store.create_commit(
            tree,
            metadata.message,
            author_name=metadata.author_name,
            author_email=metadata.author_email,
            timestamp=metadata.timestamp,
            parent=metadata.parent,
        )
        logger.debug(f"Committed {commit_id[:12]} (parent {(metadata.parent or 'none')[:12]})")
        return commit_id
