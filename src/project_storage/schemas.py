"""Pydantic response models for the project API.

Field names are snake_case in Python and serialized with the camelCase
aliases the HTTP clients expect (``projectId``, ``filePath``, ...).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from project_storage.results import Listing, ProjectEntry, Saved, StorageInfo


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        """Serialize with aliases, dropping unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ErrorResponse(ApiModel):
    success: bool = False
    error: str


class SaveResponse(ApiModel):
    success: bool = True
    project_id: str
    file_path: str
    size: int

    @classmethod
    def from_result(cls, result: Saved) -> SaveResponse:
        return cls(project_id=result.project_id, file_path=str(result.path), size=result.size)


class ProjectInfoResponse(ApiModel):
    success: bool = True
    project_id: str
    size: int
    exists: bool = True


class DeleteResponse(ApiModel):
    success: bool = True
    project_id: str


class ProjectSummary(ApiModel):
    project_id: str
    filename: str
    size: int
    created: datetime
    modified: datetime

    @classmethod
    def from_entry(cls, entry: ProjectEntry) -> ProjectSummary:
        return cls(
            project_id=entry.project_id,
            filename=entry.filename,
            size=entry.size,
            created=entry.created_at,
            modified=entry.modified_at,
        )


class ListResponse(ApiModel):
    success: bool = True
    projects: list[ProjectSummary] = Field(default_factory=list)
    count: int = 0
    error: str | None = None

    @classmethod
    def from_listing(cls, listing: Listing) -> ListResponse:
        return cls(
            success=listing.ok,
            projects=[ProjectSummary.from_entry(entry) for entry in listing.entries],
            count=listing.count,
            error=listing.error,
        )


class StorageDetails(ApiModel):
    storage_dir: str
    exists: bool
    created: datetime | None = None
    modified: datetime | None = None
    error: str | None = None


class StorageInfoResponse(ApiModel):
    success: bool = True
    storage: StorageDetails

    @classmethod
    def from_info(cls, info: StorageInfo) -> StorageInfoResponse:
        return cls(
            storage=StorageDetails(
                storage_dir=str(info.path),
                exists=info.exists,
                created=info.created_at,
                modified=info.modified_at,
                error=info.error,
            )
        )
