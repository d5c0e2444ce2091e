"""Revision replay engine.

Consumes an ordered stream of revision records and turns it into a
linear chain of commits, one per applied revision:

    resolve slug -> delete or render -> snapshot tree -> commit -> advance

The stream is never buffered as a whole. The engine does not re-sort it;
ordering is the producer's responsibility. Cancellation is honoured only
between two revisions, so the destination always ends on a complete
commit.
"""

import logging
import threading
from collections import deque
from collections.abc import Callable, Generator, Iterable, Iterator
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import StrEnum
from itertools import chain, islice
from pathlib import Path

from wikireplay.core.commits import CommitBuilder, CommitMetadata
from wikireplay.core.errors import (
    RenderError,
    ReplayCancelled,
    ReplayError,
    StartupError,
)
from wikireplay.core.scaffold import DEFAULT_MAIN_PAGE, scaffold_entries
from wikireplay.core.slugs import display, slugify
from wikireplay.core.tree import TreeState
from wikireplay.core.types import PathKey, RevisionRecord
from wikireplay.render.renderers import Renderer
from wikireplay.storage.git import GitRepository

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str | None], None]


@dataclass
class ReplayOptions:
    """Replay behaviour switches.

    Attributes:
        force_overwrite: Delete an existing destination before starting
        limit: Process only the first N records of the stream
        resume: Continue the history of an existing destination
        keep_source: Append the raw markup to each document as a comment
        main_page: Title of the page the site root redirects to
        strict_render: Abort the run on any renderer failure
        render_ahead: Number of revisions rendered ahead on a worker thread
    """

    force_overwrite: bool = False
    limit: int | None = None
    resume: bool = False
    keep_source: bool = False
    main_page: str = DEFAULT_MAIN_PAGE
    strict_render: bool = False
    render_ahead: int = 0

    def __post_init__(self) -> None:
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must not be negative")
        if self.render_ahead < 0:
            raise ValueError("render_ahead must not be negative")
        if self.force_overwrite and self.resume:
            raise ValueError("force_overwrite and resume are mutually exclusive")


class NoticeKind(StrEnum):
    """Recoverable per-revision conditions."""

    DELETE_ABSENT = "delete-absent"
    DELETE_REPEAT = "delete-repeat"
    RENDER_FAILED = "render-failed"
    UNMAPPABLE_TITLE = "unmappable-title"


@dataclass(frozen=True)
class Notice:
    """Diagnostic for a revision that was skipped or only partly applied."""

    index: int
    title: str
    kind: NoticeKind
    detail: str


@dataclass
class ReplayResult:
    """Outcome of a completed replay."""

    head: str | None
    commits: list[str] = field(default_factory=list)
    notices: list[Notice] = field(default_factory=list)
    processed: int = 0


def _yaml_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def assemble_document(title: str, body: bytes, source: bytes | None = None) -> bytes:
    """Wrap a rendered body with its front matter header.

    Args:
        title: Page title as stored in the revision
        body: Renderer output
        source: Raw markup to append as a trailing comment, if any

    Returns:
        Final document bytes
    """
    header = f"---\nlayout: default\ntitle: {_yaml_quote(display(title))}\n---\n"
    document = header.encode("utf-8") + body
    if source is not None:
        markup = source.decode("utf-8", errors="replace").replace("--", "- -")
        if not document.endswith(b"\n"):
            document += b"\n"
        document += f"<!--\n{markup.rstrip()}\n-->\n".encode("utf-8")
    return document


class ReplayEngine:
    """Applies revisions to an in-memory tree and commits each one.

    The engine owns its TreeState and commit chain; nothing else reads
    or mutates them while a replay is running.
    """

    def __init__(
        self,
        repository: GitRepository,
        renderer: Renderer,
        options: ReplayOptions | None = None,
        *,
        cancel: threading.Event | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Initialize the engine and seed the tree.

        A destination without history gets the scaffold entries. A
        destination with history resumes from its head commit's tree.

        Args:
            repository: Destination repository
            renderer: Markup renderer for page content
            options: Replay options (defaults if None)
            cancel: Event that requests a stop at the next revision boundary
            progress: Called after each record with its index and new commit id
        """
        self._repository = repository
        self._renderer = renderer
        self._options = options or ReplayOptions()
        self._cancel = cancel or threading.Event()
        self._progress = progress

        self._tree = TreeState(repository)
        self._builder = CommitBuilder(repository)
        self._head = repository.head()
        self._commits: list[str] = []
        self._notices: list[Notice] = []
        self._seen: set[PathKey] = set()

        if self._head is None:
            entries = scaffold_entries(self._options.main_page, renderer.link_suffix)
            for path, content in entries.items():
                self._tree.put(path, content)
        else:
            logger.info(f"Resuming from {self._head[:12]}")
            existing = repository.read_tree(self._head)
            self._tree.seed(existing)
            self._seen.update(self._keys_of(existing))

    @property
    def head(self) -> str | None:
        """Last commit in the chain (including a resumed head)."""
        return self._head

    @property
    def commits(self) -> list[str]:
        """Commits produced by this engine, oldest first."""
        return list(self._commits)

    @property
    def notices(self) -> list[Notice]:
        """Recoverable diagnostics recorded so far."""
        return list(self._notices)

    def cancel(self) -> None:
        """Request a stop before the next revision is applied."""
        self._cancel.set()

    def tree_path(self, key: PathKey) -> str:
        """Tree path of the document for a slug."""
        return f"{key}{self._renderer.suffix}"

    def run(self, revisions: Iterable[RevisionRecord]) -> ReplayResult:
        """Replay every record of the stream.

        Args:
            revisions: Records in non-decreasing revision order

        Returns:
            ReplayResult with the final head, new commits and notices

        Raises:
            ReplayCancelled: If cancel() was requested
            IntegrityError: If the repository failed to store an object
            ReplayError: If a renderer failure is fatal
        """
        processed = 0
        pending = self._render_ahead(revisions)
        try:
            for index, record, rendered in pending:
                if self._cancel.is_set():
                    raise ReplayCancelled(
                        f"Replay cancelled after {processed} revisions",
                        last_commit=self._head,
                    )
                commit = self._apply(index, record, rendered)
                processed += 1
                if self._progress is not None:
                    self._progress(index, commit)
        except ReplayError as e:
            if e.last_commit is None:
                e.last_commit = self._head
            raise
        finally:
            pending.close()

        logger.info(
            f"Replayed {processed} revisions into {len(self._commits)} commits "
            f"({len(self._notices)} notices)"
        )
        return ReplayResult(
            head=self._head,
            commits=list(self._commits),
            notices=list(self._notices),
            processed=processed,
        )

    def _render_ahead(
        self, revisions: Iterable[RevisionRecord]
    ) -> Generator[tuple[int, RevisionRecord, Future[bytes] | None], None, None]:
        """Pair records with renders started on a worker thread.

        With render_ahead disabled no futures are created and the engine
        renders inline. Records are always yielded in stream order, and a
        source failure surfaces only after the records read before it.
        """
        depth = self._options.render_ahead
        if depth <= 0:
            for index, record in enumerate(revisions):
                yield index, record, None
            return

        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="wikireplay-render")
        queue: deque[tuple[int, RevisionRecord, Future[bytes] | None]] = deque()
        try:
            try:
                for index, record in enumerate(revisions):
                    future = None
                    if record.content is not None and not record.is_deletion:
                        future = pool.submit(self._renderer.render, record.content)
                    queue.append((index, record, future))
                    if len(queue) > depth:
                        yield queue.popleft()
            except ReplayError:
                while queue:
                    yield queue.popleft()
                raise
            while queue:
                yield queue.popleft()
        finally:
            pool.shutdown(wait=True, cancel_futures=True)

    def _apply(
        self, index: int, record: RevisionRecord, rendered: Future[bytes] | None
    ) -> str | None:
        key = slugify(record.title)
        if not key:
            self._notice(index, record, NoticeKind.UNMAPPABLE_TITLE, "title has no letters or digits")
            return None

        path = self.tree_path(key)
        if record.content is None or record.is_deletion:
            if not self._tree.remove(path):
                # Only paths that once held content count as seen
                if key not in self._seen:
                    self._notice(index, record, NoticeKind.DELETE_ABSENT, f"{path} never existed")
                    return None
                self._notice(index, record, NoticeKind.DELETE_REPEAT, f"{path} already deleted")
            logger.debug(f"Deleted {path}")
        else:
            try:
                body = rendered.result() if rendered is not None else self._renderer.render(record.content)
            except RenderError as e:
                if e.fatal or self._options.strict_render:
                    raise ReplayError(
                        f"Rendering {record.title!r} failed: {e}", last_commit=self._head
                    ) from e
                self._notice(index, record, NoticeKind.RENDER_FAILED, str(e))
            else:
                source = record.content if self._options.keep_source else None
                self._tree.put(path, assemble_document(record.title, body, source))
                self._seen.add(key)
                logger.debug(f"Updated {path}")

        return self._commit(record, key)

    def _commit(self, record: RevisionRecord, key: PathKey) -> str:
        metadata = CommitMetadata.for_revision(record, key, parent=self._head)
        commit = self._builder.commit(self._tree.snapshot(), metadata)
        self._head = commit
        self._commits.append(commit)
        return commit

    def _notice(self, index: int, record: RevisionRecord, kind: NoticeKind, detail: str) -> None:
        notice = Notice(index=index, title=record.title, kind=kind, detail=detail)
        self._notices.append(notice)
        logger.warning(f"Revision {index} ({record.title!r}): {kind}: {detail}")

    def _keys_of(self, paths: Iterable[str]) -> set[PathKey]:
        suffix = self._renderer.suffix
        return {
            PathKey(path[: -len(suffix)])
            for path in paths
            if path.endswith(suffix) and "/" not in path
        }


def open_destination(destination: Path, options: ReplayOptions) -> GitRepository:
    """Create or open the destination repository according to options.

    Raises:
        StartupError: If the destination exists and may not be reused
    """
    if options.resume and destination.exists():
        return GitRepository.open(destination)
    return GitRepository.create(destination, force=options.force_overwrite)


def replay(
    revisions: Iterable[RevisionRecord],
    renderer: Renderer,
    destination: Path,
    options: ReplayOptions | None = None,
    *,
    cancel: threading.Event | None = None,
    progress: ProgressCallback | None = None,
) -> ReplayResult:
    """Replay a revision stream into a git repository.

    Args:
        revisions: Records in non-decreasing revision order
        renderer: Markup renderer for page content
        destination: Repository directory
        options: Replay options (defaults if None)
        cancel: Event that requests a stop at the next revision boundary
        progress: Called after each record with its index and new commit id

    Returns:
        ReplayResult; result.head is the final commit id

    Raises:
        StartupError: If the stream is empty or the destination is unusable
        ReplayError: On any other fatal failure, with last_commit set
    """
    options = options or ReplayOptions()
    records: Iterator[RevisionRecord] = iter(revisions)
    if options.limit is not None:
        records = islice(records, options.limit)

    first = next(records, None)
    if first is None:
        raise StartupError("Revision source is empty")

    repository = open_destination(destination, options)
    engine = ReplayEngine(repository, renderer, options, cancel=cancel, progress=progress)
    return engine.run(chain([first], records))
