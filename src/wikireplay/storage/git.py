"""Git persistence backend.

Writes blobs, trees and commits straight into the object database of a
bare repository. No working tree or index file is involved, so every
object is content-addressed and a replay of identical input produces
identical ids.
"""

import logging
import shutil
from collections.abc import Mapping
from datetime import UTC, datetime
from io import BytesIO
from pathlib import Path

from git import Actor, Blob, Commit, Repo, Tree
from git.exc import GitError, InvalidGitRepositoryError, NoSuchPathError
from git.index.fun import write_tree_from_cache
from git.index.typ import BaseIndexEntry
from gitdb.base import IStream

from wikireplay.core.errors import IntegrityError, StartupError

logger = logging.getLogger(__name__)

FILE_MODE = 0o100644


def format_git_date(timestamp: datetime) -> str:
    """Format a timestamp in git's internal "<seconds> <offset>" form.

    Naive datetimes are taken to be UTC. Sub-second precision is dropped.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    return f"{int(timestamp.timestamp())} +0000"


class GitRepository:
    """Bare git repository used as the replay destination."""

    def __init__(self, repo: Repo) -> None:
        """Wrap an open repository.

        Args:
            repo: GitPython repository (normally bare)
        """
        self._repo = repo

    @classmethod
    def create(cls, path: Path, *, force: bool = False) -> "GitRepository":
        """Initialize a new bare repository at path.

        Args:
            path: Destination directory
            force: Delete any existing content at path first

        Returns:
            GitRepository for the new repository

        Raises:
            StartupError: If path exists and force is not set, or it cannot be written
        """
        if path.exists():
            if not force:
                raise StartupError(f"Destination {str(path)!r} exists")
            logger.info(f"Removing existing destination {path}")
            try:
                if path.is_dir():
                    shutil.rmtree(path)
                else:
                    path.unlink()
            except OSError as e:
                raise StartupError(f"Cannot remove destination {str(path)!r}: {e}") from e

        try:
            path.mkdir(parents=True)
            repo = Repo.init(path, bare=True)
        except (OSError, GitError) as e:
            raise StartupError(f"Cannot initialize repository at {str(path)!r}: {e}") from e

        logger.info(f"Initialized repository at {repo.git_dir}")
        return cls(repo)

    @classmethod
    def open(cls, path: Path) -> "GitRepository":
        """Open an existing repository.

        Raises:
            StartupError: If path is not a git repository
        """
        try:
            repo = Repo(path)
        except (InvalidGitRepositoryError, NoSuchPathError) as e:
            raise StartupError(f"Not a git repository: {str(path)!r}") from e

        logger.info(f"Opened repository at {repo.git_dir}")
        return cls(repo)

    @property
    def path(self) -> Path:
        """Repository git directory."""
        return Path(self._repo.git_dir)

    @property
    def repo(self) -> Repo:
        """Underlying GitPython repository."""
        return self._repo

    def head(self) -> str | None:
        """Return the hex id of the commit HEAD points to, or None if unborn."""
        if not self._repo.head.is_valid():
            return None
        return self._repo.head.commit.hexsha

    def read_tree(self, commit: str) -> dict[str, str]:
        """List the files of a commit's tree.

        Args:
            commit: Commit hex id

        Returns:
            Mapping of file path to blob hex id
        """
        tree = self._repo.commit(commit).tree
        return {item.path: item.hexsha for item in tree.traverse() if item.type == "blob"}

    def write_blob(self, data: bytes) -> str:
        """Store bytes as a blob and return its hex id."""
        try:
            istream = self._repo.odb.store(IStream(Blob.type, len(data), BytesIO(data)))
        except (OSError, GitError, ValueError) as e:
            logger.error(f"Failed to write blob: {e}")
            raise IntegrityError(f"Failed to write blob: {e}") from e
        return istream.binsha.hex()

    def write_tree(self, entries: Mapping[str, str]) -> str:
        """Store a (possibly nested) tree built from a path -> blob id mapping.

        Args:
            entries: Mapping of slash-separated file path to blob hex id

        Returns:
            Hex id of the root tree
        """
        index_entries = [
            BaseIndexEntry((FILE_MODE, bytes.fromhex(blob), 0, path))
            for path, blob in sorted(entries.items())
        ]
        try:
            binsha, _items = write_tree_from_cache(
                index_entries, self._repo.odb, slice(0, len(index_entries))
            )
        except (OSError, GitError, ValueError) as e:
            logger.error(f"Failed to write tree: {e}")
            raise IntegrityError(f"Failed to write tree: {e}") from e
        return binsha.hex()

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
        """Create a commit and advance HEAD to it.

        Author and committer are the same identity with the same date.

        Args:
            tree: Root tree hex id
            message: Commit message
            author_name: Author display name
            author_email: Author email
            timestamp: Author and commit date
            parent: Parent commit hex id, or None for a root commit

        Returns:
            Hex id of the new commit
        """
        actor = Actor(author_name, author_email)
        date = format_git_date(timestamp)
        try:
            parents = [Commit(self._repo, bytes.fromhex(parent))] if parent else []
            commit = Commit.create_from_tree(
                self._repo,
                Tree(self._repo, bytes.fromhex(tree)),
                message,
                parent_commits=parents,
                head=True,
                author=actor,
                committer=actor,
                author_date=date,
                commit_date=date,
            )
        except (OSError, GitError, ValueError) as e:
            logger.error(f"Failed to create commit: {e}")
            raise IntegrityError(f"Failed to create commit: {e}") from e
        return commit.hexsha
