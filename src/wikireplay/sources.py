"""Revision sources.

Sources yield RevisionRecords lazily, in the order the replay engine
must apply them. A source can restart from an offset so an interrupted
replay can be resumed without re-reading the records already committed.
"""

import json
import logging
from collections.abc import Iterable, Iterator, Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from wikireplay.core.errors import SourceError
from wikireplay.core.types import RevisionRecord

logger = logging.getLogger(__name__)


def parse_timestamp(value: object) -> datetime:
    """Parse a revision timestamp to an aware UTC datetime (whole seconds).

    Accepts Unix seconds (int/float), ISO-8601 strings and MediaWiki's
    14-digit "YYYYMMDDHHMMSS" form.

    Raises:
        ValueError: If the value cannot be interpreted
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, int | float):
        try:
            parsed = datetime.fromtimestamp(int(value), tz=UTC)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Timestamp out of range: {value!r}") from e
    elif isinstance(value, str):
        text = value.strip()
        if text.isdigit() and len(text) == 14:
            parsed = datetime.strptime(text, "%Y%m%d%H%M%S").replace(tzinfo=UTC)
        else:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=UTC)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")
    return parsed.astimezone(UTC).replace(microsecond=0)


def _optional_str(row: Mapping[str, Any], key: str) -> str | None:
    value = row.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def record_from_row(row: Mapping[str, Any]) -> RevisionRecord:
    """Build a RevisionRecord from a mapping.

    Keys: title, content, message, minor, author_email, author_name,
    timestamp. Content may be str or bytes; None means deletion.

    Raises:
        ValueError: If a field is missing or has the wrong type
    """
    if not isinstance(row, Mapping):
        raise ValueError("revision must be an object")

    title = row.get("title")
    if not isinstance(title, str) or not title:
        raise ValueError("title must be a non-empty string")

    content = row.get("content")
    if isinstance(content, str):
        content = content.encode("utf-8")
    elif content is not None and not isinstance(content, bytes):
        raise ValueError("content must be a string")

    if "timestamp" not in row:
        raise ValueError("timestamp is required")

    return RevisionRecord(
        title=title,
        content=content,
        message=_optional_str(row, "message"),
        is_minor=bool(row.get("minor", False)),
        author_email=_optional_str(row, "author_email") or "",
        author_name=_optional_str(row, "author_name") or "",
        timestamp=parse_timestamp(row["timestamp"]),
    )


def _check_order(records: Iterable[tuple[int, RevisionRecord]]) -> Iterator[RevisionRecord]:
    previous: datetime | None = None
    for position, record in records:
        if previous is not None and record.timestamp < previous:
            raise SourceError(
                f"Record {position} ({record.title!r}) is older than its predecessor: "
                f"{record.timestamp.isoformat()} < {previous.isoformat()}"
            )
        previous = record.timestamp
        yield record


def records_from_rows(rows: Iterable[Mapping[str, Any]], *, offset: int = 0) -> Iterator[RevisionRecord]:
    """Adapt an iterable of row mappings (e.g., a database cursor).

    Args:
        rows: Mappings with the keys accepted by record_from_row
        offset: Number of leading rows to skip

    Raises:
        SourceError: If a row is malformed or out of order
    """

    def convert() -> Iterator[tuple[int, RevisionRecord]]:
        for position, row in enumerate(rows):
            if position < offset:
                continue
            try:
                yield position, record_from_row(row)
            except ValueError as e:
                raise SourceError(f"Invalid revision at row {position}: {e}") from e

    return _check_order(convert())


class JsonLinesSource:
    """Revisions stored one JSON object per line.

    Iteration opens the file afresh each time, so the same source can be
    replayed more than once. Blank lines are ignored.
    """

    def __init__(self, path: Path, *, offset: int = 0) -> None:
        """Initialize source.

        Args:
            path: JSON Lines file
            offset: Number of leading records to skip
        """
        if offset < 0:
            raise ValueError("offset must not be negative")
        self._path = path
        self._offset = offset

    @property
    def path(self) -> Path:
        """Source file."""
        return self._path

    def with_offset(self, offset: int) -> "JsonLinesSource":
        """Return a source over the same file starting at another record."""
        return JsonLinesSource(self._path, offset=offset)

    def __iter__(self) -> Iterator[RevisionRecord]:
        if not self._path.exists():
            raise SourceError(f"Revision file not found: {self._path}")
        logger.info(f"Reading revisions from {self._path}")
        return _check_order(self._read())

    def _read(self) -> Iterator[tuple[int, RevisionRecord]]:
        position = 0
        with self._path.open("rb") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                if position >= self._offset:
                    yield position, self._parse(line, lineno)
                position += 1

    def _parse(self, line: bytes, lineno: int) -> RevisionRecord:
        try:
            return record_from_row(json.loads(line.decode("utf-8")))
        except (UnicodeDecodeError, ValueError) as e:
            raise SourceError(f"{self._path}:{lineno}: {e}") from e
