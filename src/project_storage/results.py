"""Tagged results returned by ``ProjectStorage``.

Every storage operation returns one of these instead of raising, and the
HTTP layer matches on the concrete type to choose a status code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

NOT_FOUND_MESSAGE = "Project not found"


class ErrorKind(str, Enum):
    """Failure categories and their HTTP meaning."""

    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    IO_FAILURE = "io_failure"


@dataclass(frozen=True)
class Saved:
    project_id: str
    path: Path
    size: int


@dataclass(frozen=True)
class Loaded:
    project_id: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Deleted:
    project_id: str


@dataclass(frozen=True)
class NotFound:
    project_id: str
    message: str = NOT_FOUND_MESSAGE

    @property
    def kind(self) -> ErrorKind:
        return ErrorKind.NOT_FOUND


@dataclass(frozen=True)
class Failure:
    """Any failure other than a missing project."""

    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class ProjectEntry:
    """One stored project as seen by ``ProjectStorage.list``."""

    project_id: str
    filename: str
    size: int
    created_at: datetime
    modified_at: datetime


@dataclass(frozen=True)
class Listing:
    """Result of enumerating the storage directory.

    ``error`` is set when enumeration failed; ``entries`` is then empty.
    """

    entries: list[ProjectEntry] = field(default_factory=list)
    error: str | None = None

    @property
    def count(self) -> int:
        return len(self.entries)

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class StorageInfo:
    """Diagnostics for the storage directory itself."""

    path: Path
    exists: bool
    created_at: datetime | None = None
    modified_at: datetime | None = None
    error: str | None = None


SaveResult = Saved | Failure
LoadResult = Loaded | NotFound | Failure
DeleteResult = Deleted | NotFound | Failure
