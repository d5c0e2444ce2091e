"""In-memory file tree between commits.

Maps tree paths to blob references. New content is staged on put() and
only written to the repository when the next snapshot is taken, so each
snapshot writes just the entries touched since the previous one.
"""

import logging
from collections.abc import Iterator, Mapping
from typing import Protocol

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    """Persistence primitives needed to materialize a tree."""

    def write_blob(self, data: bytes) -> str: ...

    def write_tree(self, entries: Mapping[str, str]) -> str: ...


class TreeState:
    """Mutable path -> content mapping representing the working tree."""

    def __init__(self, store: ObjectStore) -> None:
        self._store = store
        self._blobs: dict[str, str] = {}
        self._staged: dict[str, bytes] = {}

    def __contains__(self, path: object) -> bool:
        return path in self._blobs or path in self._staged

    def __len__(self) -> int:
        return len(self._blobs.keys() | self._staged.keys())

    def paths(self) -> Iterator[str]:
        """Iterate live paths in sorted order."""
        return iter(sorted(self._blobs.keys() | self._staged.keys()))

    def seed(self, blobs: Mapping[str, str]) -> None:
        """Load already-persisted entries (e.g., the tree of a resumed head).

        Args:
            blobs: Mapping of tree path to blob id
        """
        self._blobs.update(blobs)

    def put(self, path: str, content: bytes) -> None:
        """Insert or replace the entry at path."""
        self._blobs.pop(path, None)
        self._staged[path] = content

    def remove(self, path: str) -> bool:
        """Remove the entry at path.

        Returns:
            True if the entry existed, False if the call was a no-op
        """
        found = path in self._staged or path in self._blobs
        self._staged.pop(path, None)
        self._blobs.pop(path, None)
        return found

    def snapshot(self) -> str:
        """Persist staged entries and write a tree of the current mapping.

        Returns:
            Id of the written tree object
        """
        if self._staged:
            logger.debug(f"Writing {len(self._staged)} staged blobs")
        for path, content in self._staged.items():
            self._blobs[path] = self._store.write_blob(content)
        self._staged.clear()
        return self._store.write_tree(self._blobs)
