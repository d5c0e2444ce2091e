"""Repository inspection helpers for tests."""

from collections.abc import Callable
from pathlib import Path

from git import Commit, Repo
from wikireplay.core.types import RevisionRecord

RecordFactory = Callable[..., RevisionRecord]


def tree_files(commit: Commit) -> dict[str, bytes]:
    """Read every file of a commit's tree."""
    return {
        item.path: item.data_stream.read()
        for item in commit.tree.traverse()
        if item.type == "blob"
    }


def commit_chain(path: Path) -> list[Commit]:
    """Commits reachable from HEAD, oldest first."""
    repo = Repo(path)
    return list(reversed(list(repo.iter_commits("HEAD"))))
