"""Shared pytest fixtures for project storage tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from project_storage.app import create_app
from project_storage.config import Settings
from project_storage.storage import ProjectStorage

# Small enough that size-limit tests stay cheap
TEST_MAX_UPLOAD_BYTES = 1024


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "projects"


@pytest.fixture
def settings(storage_dir: Path) -> Settings:
    return Settings(
        _env_file=None,
        storage_dir=storage_dir,
        max_upload_bytes=TEST_MAX_UPLOAD_BYTES,
        fallback="",
    )


@pytest.fixture
def storage(settings: Settings) -> ProjectStorage:
    return ProjectStorage(settings.storage_dir, max_size=settings.max_upload_bytes)


@pytest.fixture
async def client(settings: Settings, storage: ProjectStorage) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to an app serving ``storage``."""
    app = create_app(settings, storage=storage)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def project_files(storage_dir: Path) -> Callable[[], list[str]]:
    """Return a callable listing the project files currently on disk."""

    def _list() -> list[str]:
        return sorted(p.name for p in storage_dir.glob("*.sb3"))

    return _list
