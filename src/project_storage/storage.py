"""Filesystem-backed storage for .sb3 project archives.

Each project is a single file ``<storage_dir>/<id>.sb3`` holding the raw
archive bytes. The store never inspects payloads.

Writes go to a dot-prefixed temporary file in the same directory and are
renamed into place, so a concurrent ``load`` sees either the previous or the
new content, never a partial file. There is no in-memory locking; concurrent
access relies on the filesystem's rename/unlink semantics.

No method raises for expected failures. Each returns one of the tagged
results from ``project_storage.results``.
"""

from __future__ import annotations

import logging
import os
import secrets
from datetime import datetime, timezone
from pathlib import Path

from project_storage.errors import InvalidProjectIdError, PayloadTooLargeError
from project_storage.results import (
    DeleteResult,
    Deleted,
    ErrorKind,
    Failure,
    Listing,
    Loaded,
    LoadResult,
    NotFound,
    ProjectEntry,
    Saved,
    SaveResult,
    StorageInfo,
)
from project_storage.utils.project_id import (
    generate_project_id,
    normalize_project_id,
    project_filename,
    project_id_from_filename,
)

logger = logging.getLogger(__name__)

_TEMP_SUFFIX = ".tmp"

# Same as a plain open(): the process umask applies
_FILE_MODE = 0o666


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _created_at(stats: os.stat_result) -> datetime:
    # st_birthtime only exists on macOS/BSD (and Windows on 3.12+)
    birthtime = getattr(stats, "st_birthtime", None)
    return _timestamp(birthtime if birthtime is not None else stats.st_ctime)


class ProjectStorage:
    """Identifier-addressed blob store over a single directory."""

    def __init__(self, storage_dir: str | Path, *, max_size: int | None = None) -> None:
        self.storage_dir = Path(storage_dir)
        self.max_size = max_size
        self.ensure_ready()

    def ensure_ready(self) -> None:
        """Create the storage directory (and parents) if it is missing."""
        if not self.storage_dir.is_dir():
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            logger.info("Created projects storage directory: %s", self.storage_dir)

    def generate_id(self) -> str:
        return generate_project_id()

    def path_for(self, project_id: str) -> Path:
        """Map an id to its file path. Raises ``InvalidProjectIdError``."""
        return self.storage_dir / project_filename(normalize_project_id(project_id))

    def save(self, data: bytes, project_id: str | None = None) -> SaveResult:
        """Write ``data`` under ``project_id`` (generated when None).

        An existing project with the same id is replaced.
        """
        try:
            project_id = normalize_project_id(project_id) if project_id else self.generate_id()
        except InvalidProjectIdError as e:
            return Failure(ErrorKind.INVALID_INPUT, str(e))

        payload = bytes(data)
        if self.max_size is not None and len(payload) > self.max_size:
            return Failure(ErrorKind.PAYLOAD_TOO_LARGE, str(PayloadTooLargeError(self.max_size)))

        path = self.path_for(project_id)
        tmp_path = self.storage_dir / f".{project_id}.{secrets.token_hex(8)}{_TEMP_SUFFIX}"
        try:
            flags = os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0)
            fd = os.open(tmp_path, flags, _FILE_MODE)
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            logger.exception("Error saving project %s", project_id)
            tmp_path.unlink(missing_ok=True)
            return Failure(ErrorKind.IO_FAILURE, str(e))

        logger.info("Project saved: %s (%d bytes)", project_id, len(payload))
        return Saved(project_id=project_id, path=path, size=len(payload))

    def load(self, project_id: str) -> LoadResult:
        try:
            project_id = normalize_project_id(project_id)
        except InvalidProjectIdError as e:
            return Failure(ErrorKind.INVALID_INPUT, str(e))

        path = self.path_for(project_id)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return NotFound(project_id)
        except OSError as e:
            logger.exception("Error loading project %s", project_id)
            return Failure(ErrorKind.IO_FAILURE, str(e))

        logger.info("Project loaded: %s (%d bytes)", project_id, len(data))
        return Loaded(project_id=project_id, data=data)

    def list(self) -> Listing:
        """Enumerate stored projects, most recently modified first."""
        try:
            children = list(os.scandir(self.storage_dir))
        except OSError as e:
            logger.warning("Error listing projects in %s: %s", self.storage_dir, e)
            return Listing(entries=[], error=str(e))

        entries: list[ProjectEntry] = []
        for child in children:
            project_id = project_id_from_filename(child.name)
            if project_id is None:
                continue
            try:
                if not child.is_file():
                    continue
                stats = child.stat()
            except FileNotFoundError:
                # Deleted between scandir() and stat()
                continue
            except OSError as e:
                logger.warning("Skipping unreadable project file %s: %s", child.path, e)
                continue
            entries.append(
                ProjectEntry(
                    project_id=project_id,
                    filename=child.name,
                    size=stats.st_size,
                    created_at=_created_at(stats),
                    modified_at=_timestamp(stats.st_mtime),
                )
            )

        entries.sort(key=lambda entry: entry.project_id)
        entries.sort(key=lambda entry: entry.modified_at, reverse=True)
        return Listing(entries=entries)

    def delete(self, project_id: str) -> DeleteResult:
        try:
            project_id = normalize_project_id(project_id)
        except InvalidProjectIdError as e:
            return Failure(ErrorKind.INVALID_INPUT, str(e))

        path = self.path_for(project_id)
        try:
            path.unlink()
        except FileNotFoundError:
            return NotFound(project_id)
        except OSError as e:
            logger.exception("Error deleting project %s", project_id)
            return Failure(ErrorKind.IO_FAILURE, str(e))

        logger.info("Project deleted: %s", project_id)
        return Deleted(project_id=project_id)

    def stat_storage_dir(self) -> StorageInfo:
        try:
            stats = self.storage_dir.stat()
        except OSError as e:
            return StorageInfo(path=self.storage_dir, exists=False, error=str(e))
        return StorageInfo(
            path=self.storage_dir,
            exists=True,
            created_at=_created_at(stats),
            modified_at=_timestamp(stats.st_mtime),
        )
