"""Tests for the FastAPI application factory."""

from pathlib import Path

from httpx import ASGITransport, AsyncClient

from project_storage import __version__
from project_storage.app import create_app
from project_storage.config import Settings
from project_storage.storage import ProjectStorage


async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}


def test_builds_storage_from_settings(tmp_path: Path) -> None:
    storage_dir = tmp_path / "from-settings"
    settings = Settings(_env_file=None, storage_dir=storage_dir, max_upload_bytes=2048)

    app = create_app(settings)

    storage = app.state.storage
    assert isinstance(storage, ProjectStorage)
    assert storage.storage_dir == storage_dir
    assert storage.max_size == 2048
    assert storage_dir.is_dir()


async def test_injected_storage_is_used(settings: Settings, tmp_path: Path) -> None:
    other = ProjectStorage(tmp_path / "other")
    other.save(b"elsewhere", "injected")

    app = create_app(settings, storage=other)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/projects/injected")

    assert response.status_code == 200
    assert response.content == b"elsewhere"


async def test_requests_are_logged(client: AsyncClient, caplog) -> None:
    with caplog.at_level("INFO", logger="project_storage.app"):
        await client.get("/api/projects/doesnotexist")
    assert any(
        "GET /api/projects/doesnotexist 404" in record.getMessage() for record in caplog.records
    )
