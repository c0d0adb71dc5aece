"""Utility modules for project storage."""

from project_storage.utils.project_id import (
    PROJECT_SUFFIX,
    generate_project_id,
    is_valid_project_id,
    normalize_project_id,
    project_filename,
    project_id_from_filename,
)

__all__ = [
    "PROJECT_SUFFIX",
    "generate_project_id",
    "is_valid_project_id",
    "normalize_project_id",
    "project_filename",
    "project_id_from_filename",
]
