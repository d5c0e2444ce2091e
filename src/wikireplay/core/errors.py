"""Replay error taxonomy.

Fatal conditions are raised as ReplayError subclasses carrying the last
commit produced before the failure. Recoverable per-revision conditions
never escape the engine; they are recorded as notices instead.
"""


class ReplayError(Exception):
    """Base class for failures that stop a replay.

    Attributes:
        last_commit: Hex id of the last commit created, or None
    """

    def __init__(self, message: str, *, last_commit: str | None = None) -> None:
        super().__init__(message)
        self.last_commit = last_commit


class StartupError(ReplayError):
    """Replay could not start; no commit was made."""


class IntegrityError(ReplayError):
    """The persistence backend failed to write an object or reference."""


class ReplayCancelled(ReplayError):
    """Replay stopped on request between two revisions."""


class SourceError(ReplayError):
    """A revision source produced malformed or out-of-order input."""


class RenderError(Exception):
    """A renderer could not convert one revision's markup.

    Non-fatal render errors skip the content change of a single revision.
    Fatal ones abort the whole replay.
    """

    def __init__(self, message: str, *, fatal: bool = False) -> None:
        super().__init__(message)
        self.fatal = fatal
