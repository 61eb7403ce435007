"""Pytest configuration and fixtures for Stowage tests.

This module provides common fixtures and configuration for all tests.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from stowage.models.upload import UploadDescriptor
from stowage.records.store import InMemoryRecord
from stowage.storage.file_store import FileStore
from stowage.storage.filesystem_store import STOWAGE_FILE_STORE_BASE_DIR_ENV, LocalFileStore


class RecordingFileStore(FileStore):
    """LocalFileStore wrapper that records every call for assertions."""

    def __init__(self, inner: FileStore) -> None:
        self._inner = inner
        self.moves: list[tuple[str, str, bool]] = []
        self.deletes: list[str] = []
        self.exists_checks: list[str] = []
        self.fail_delete: Exception | None = None

    @property
    def backend_name(self) -> str:
        return f"recording:{self._inner.backend_name}"

    async def move_file(self, source: str, destination: str, *, overwrite: bool) -> None:
        self.moves.append((source, destination, overwrite))
        await self._inner.move_file(source, destination, overwrite=overwrite)

    async def delete_file(self, path: str) -> None:
        self.deletes.append(path)
        if self.fail_delete is not None:
            raise self.fail_delete
        await self._inner.delete_file(path)

    async def exists(self, path: str) -> bool:
        self.exists_checks.append(path)
        return await self._inner.exists(path)


@pytest.fixture(autouse=True)
def clear_stowage_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test without a sandbox or tracing configured from the host env."""
    monkeypatch.delenv(STOWAGE_FILE_STORE_BASE_DIR_ENV, raising=False)
    monkeypatch.delenv("STOWAGE_OTEL_ENABLED", raising=False)
    monkeypatch.delenv("STOWAGE_OTEL_TEST_CAPTURE", raising=False)


@pytest.fixture
def staging_dir(tmp_path: Path) -> Path:
    """Directory standing in for the multipart decoder's temp area."""
    path = tmp_path / "staging"
    path.mkdir()
    return path


@pytest.fixture
def destination(tmp_path: Path) -> str:
    """Destination directory for stored artifacts (created on first move)."""
    return str(tmp_path / "uploads")


@pytest.fixture
def store() -> RecordingFileStore:
    """Recording store over an unsandboxed LocalFileStore."""
    return RecordingFileStore(LocalFileStore())


@pytest.fixture
def record() -> InMemoryRecord:
    """An empty record."""
    return InMemoryRecord(record_id="rec-1")


@pytest.fixture
def stage_file(staging_dir: Path) -> Callable[..., UploadDescriptor]:
    """Factory writing a staged payload and returning its descriptor."""

    def _stage(
        name: str = "photo.png",
        content_type: str = "image/png",
        data: bytes = b"\x89PNG fake image bytes",
    ) -> UploadDescriptor:
        staged = staging_dir / f"upload-{len(list(staging_dir.iterdir()))}"
        staged.write_bytes(data)
        return UploadDescriptor(
            staging_path=str(staged),
            declared_name=name,
            content_type=content_type,
            size=len(data),
        )

    return _stage
