"""Project identifier generation and validation.

Identifiers become filenames, so anything a client sends is normalized
(stripped, lower-cased) and checked against a restricted alphabet before it
is ever joined onto the storage directory.
"""

from __future__ import annotations

import re
import secrets
from typing import Final

from project_storage.errors import InvalidProjectIdError

PROJECT_SUFFIX: Final[str] = ".sb3"

# 16 random bytes -> 32 hex chars
ID_BYTES: Final[int] = 16
MAX_ID_LENGTH: Final[int] = 128

_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"[a-z0-9][a-z0-9_-]*")


def generate_project_id() -> str:
    """Return a new random project id (32 lowercase hex characters)."""
    return secrets.token_hex(ID_BYTES)


def normalize_project_id(project_id: str) -> str:
    """Normalize a client-supplied id or raise ``InvalidProjectIdError``.

    Lower-casing keeps two ids from mapping onto the same file on a
    case-insensitive filesystem.
    """
    if not isinstance(project_id, str):
        raise InvalidProjectIdError(f"Project id must be a string, got {type(project_id).__name__}")

    normalized = project_id.strip().lower()
    if not normalized:
        raise InvalidProjectIdError("Project id must not be empty")
    if len(normalized) > MAX_ID_LENGTH:
        raise InvalidProjectIdError(f"Project id longer than {MAX_ID_LENGTH} characters")
    if not _ID_PATTERN.fullmatch(normalized):
        raise InvalidProjectIdError(f"Invalid project id: {project_id!r}")
    return normalized


def is_valid_project_id(project_id: str) -> bool:
    try:
        normalize_project_id(project_id)
    except InvalidProjectIdError:
        return False
    return True


def project_filename(project_id: str) -> str:
    return f"{project_id}{PROJECT_SUFFIX}"


def project_id_from_filename(filename: str) -> str | None:
    """Strip the project suffix, or return None for non-project files."""
    if not filename.endswith(PROJECT_SUFFIX) or filename.startswith("."):
        return None
    return filename[: -len(PROJECT_SUFFIX)]
