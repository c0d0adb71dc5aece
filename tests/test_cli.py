"""Tests for the project-storage CLI."""

import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from project_storage import __version__
from project_storage import cli
from project_storage.cli import app
from project_storage.results import Loaded
from project_storage.storage import ProjectStorage

runner = CliRunner()


@pytest.fixture
def store_args(storage_dir: Path) -> list[str]:
    return ["--storage-dir", str(storage_dir)]


def _invoke(*args: str):
    return runner.invoke(app, list(args), env={"COLUMNS": "200"})


def test_version() -> None:
    result = _invoke("version")
    assert result.exit_code == 0
    assert f"project-storage v{__version__}" in result.output


def test_put_and_get(tmp_path: Path, storage_dir: Path, store_args: list[str]) -> None:
    source = tmp_path / "game.sb3"
    source.write_bytes(b"PK\x03\x04cli")

    put = _invoke("put", str(source), "--id", "from-cli", *store_args)
    assert put.exit_code == 0, put.output
    assert "from-cli" in put.output
    assert (storage_dir / "from-cli.sb3").read_bytes() == b"PK\x03\x04cli"

    target = tmp_path / "out.sb3"
    get = _invoke("get", "from-cli", "--output", str(target), *store_args)
    assert get.exit_code == 0, get.output
    assert target.read_bytes() == b"PK\x03\x04cli"


def test_put_generates_id(tmp_path: Path, storage: ProjectStorage, store_args: list[str]) -> None:
    source = tmp_path / "game.sb3"
    source.write_bytes(b"data")

    result = _invoke("put", str(source), *store_args)

    assert result.exit_code == 0, result.output
    [entry] = storage.list().entries
    assert entry.project_id in result.output


def test_put_missing_file(tmp_path: Path, store_args: list[str]) -> None:
    result = _invoke("put", str(tmp_path / "nope.sb3"), *store_args)
    assert result.exit_code == 1
    assert "does not exist" in result.output


def test_put_rejects_unsafe_id(tmp_path: Path, storage_dir: Path, store_args: list[str]) -> None:
    source = tmp_path / "game.sb3"
    source.write_bytes(b"data")
    result = _invoke("put", str(source), "--id", "../escape", *store_args)
    assert result.exit_code == 1
    assert not (tmp_path / "escape.sb3").exists()


def test_list(storage: ProjectStorage, store_args: list[str]) -> None:
    storage.save(b"1", "alpha")
    storage.save(b"22", "beta")

    result = _invoke("list", *store_args)

    assert result.exit_code == 0, result.output
    assert "alpha" in result.output
    assert "beta" in result.output
    assert "Projects (2)" in result.output


def test_list_empty(store_args: list[str]) -> None:
    result = _invoke("list", *store_args)
    assert result.exit_code == 0
    assert "No projects stored" in result.output


def test_info(storage: ProjectStorage, store_args: list[str]) -> None:
    storage.save(b"12345", "described")
    result = _invoke("info", "described", *store_args)
    assert result.exit_code == 0, result.output
    assert "described" in result.output
    assert "5 bytes" in result.output


def test_info_not_found(store_args: list[str]) -> None:
    result = _invoke("info", "missing", *store_args)
    assert result.exit_code == 1
    assert "Project not found" in result.output


def test_delete(storage: ProjectStorage, store_args: list[str]) -> None:
    storage.save(b"x", "doomed")

    result = _invoke("delete", "doomed", *store_args)

    assert result.exit_code == 0, result.output
    assert not isinstance(storage.load("doomed"), Loaded)
    assert _invoke("delete", "doomed", *store_args).exit_code == 1


def test_storage(storage_dir: Path, store_args: list[str]) -> None:
    result = _invoke("storage", *store_args)
    assert result.exit_code == 0, result.output
    assert "Exists:" in result.output
    assert "True" in result.output


def test_info_file_removed_after_load(
    storage: ProjectStorage, store_args: list[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    storage.save(b"12345", "racing")
    original_load = ProjectStorage.load

    def load_then_delete(self: ProjectStorage, project_id: str):
        result = original_load(self, project_id)
        self.delete(project_id)
        return result

    monkeypatch.setattr(ProjectStorage, "load", load_then_delete)
    result = _invoke("info", "racing", *store_args)
    assert result.exit_code == 1
    assert "Project not found" in result.output


def test_serve_passes_storage_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict] = []
    monkeypatch.setattr(cli.uvicorn, "run", lambda target, **kwargs: calls.append(kwargs))
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    # Registered so the variable is restored after the test
    monkeypatch.setenv("STORAGE_DIR", "unused")

    result = _invoke("serve", "--port", "9001", "--storage-dir", str(tmp_path / "served"))

    assert result.exit_code == 0, result.output
    assert calls[0]["factory"] is True
    assert calls[0]["port"] == 9001
    assert os.environ["STORAGE_DIR"] == str(tmp_path / "served")
