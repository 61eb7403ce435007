"""Stowage local filesystem FileStore backend.

Provides durable local storage for uploaded artifacts with:
- Atomic moves (same-device rename, or copy to a temp file + replace)
- Optional sandbox directory with path traversal protection
- Blocking filesystem calls offloaded to a worker thread

Environment Variables:
    STOWAGE_FILE_STORE_BASE_DIR: Sandbox directory. Relative paths resolve
        against it and no artifact may be written, deleted or probed
        outside of it. When unset, paths are used as given.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import shutil
import uuid
from pathlib import Path

from stowage.errors import DestinationExistsError, PathTraversalError, RelocationFailedError
from stowage.storage.file_store import FileStore
from stowage.storage.tracing import traced_storage_operation

logger = logging.getLogger(__name__)

STOWAGE_FILE_STORE_BASE_DIR_ENV = "STOWAGE_FILE_STORE_BASE_DIR"


class LocalFileStore(FileStore):
    """Filesystem-based artifact storage.

    Destination parent directories are created on demand. A move never
    leaves a partially written file at the destination: cross-device moves
    are staged in a temporary file next to the destination and swapped in
    with ``os.replace``.
    """

    def __init__(self, base_dir: str | Path | None = None) -> None:
        """Initialize filesystem storage.

        Args:
            base_dir: Sandbox directory. If None, uses the
                STOWAGE_FILE_STORE_BASE_DIR env var; if that is unset too,
                no sandbox is applied.
        """
        if base_dir is None:
            base_dir = os.environ.get(STOWAGE_FILE_STORE_BASE_DIR_ENV) or None

        self._base_dir = Path(base_dir).resolve() if base_dir is not None else None
        logger.debug("LocalFileStore initialized with base_dir=%s", self._base_dir)

    @property
    def backend_name(self) -> str:
        """Return the backend identifier."""
        return "filesystem"

    @property
    def base_dir(self) -> Path | None:
        """Return the sandbox directory, if any."""
        return self._base_dir

    def _resolve(self, path: str) -> Path:
        """Resolve a storage path, enforcing the sandbox when configured."""
        if "\x00" in path:
            raise PathTraversalError(message="Invalid path: null byte", path=path)

        candidate = Path(path)
        if self._base_dir is None:
            return candidate

        resolved = (self._base_dir / candidate).resolve()
        try:
            resolved.relative_to(self._base_dir)
        except ValueError as e:
            raise PathTraversalError(
                message="Path resolves outside storage base directory",
                path=path,
            ) from e
        return resolved

    def _move_sync(self, source: Path, destination: Path, overwrite: bool) -> None:
        if destination.is_dir():
            raise RelocationFailedError(
                message="Destination is a directory",
                path=str(destination),
            )
        if not overwrite and destination.exists():
            raise DestinationExistsError(path=str(destination))

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RelocationFailedError(
                message=f"Failed to create destination directory: {e}",
                path=str(destination),
                cause=e,
            ) from e

        try:
            os.replace(source, destination)
            return
        except OSError as e:
            if e.errno != errno.EXDEV:
                raise RelocationFailedError(
                    message=f"Failed to move file: {e}",
                    path=str(destination),
                    cause=e,
                ) from e

        tmp_file = destination.parent / f".{destination.name}.{uuid.uuid4().hex}.tmp"
        try:
            shutil.copy2(source, tmp_file)
            tmp_file.replace(destination)
            source.unlink()
        except OSError as e:
            tmp_file.unlink(missing_ok=True)
            raise RelocationFailedError(
                message=f"Failed to move file across devices: {e}",
                path=str(destination),
                cause=e,
            ) from e

    def _delete_sync(self, path: Path) -> None:
        try:
            path.unlink()
        except OSError as e:
            raise RelocationFailedError(
                message=f"Failed to delete file: {e}",
                path=str(path),
                cause=e,
            ) from e

    @traced_storage_operation("move", ("source", "destination"))
    async def move_file(self, source: str, destination: str, *, overwrite: bool) -> None:
        """Move a staged file to its destination."""
        if "\x00" in source:
            raise PathTraversalError(message="Invalid source path: null byte", path=source)
        src = Path(source)
        dst = self._resolve(destination)

        await asyncio.to_thread(self._move_sync, src, dst, overwrite)
        logger.debug("Moved file: source=%s destination=%s overwrite=%s", src, dst, overwrite)

    @traced_storage_operation("delete")
    async def delete_file(self, path: str) -> None:
        """Delete the artifact at ``path``."""
        target = self._resolve(path)

        await asyncio.to_thread(self._delete_sync, target)
        logger.debug("Deleted file: path=%s", target)

    @traced_storage_operation("exists")
    async def exists(self, path: str) -> bool:
        """Return True if a regular file is present at ``path``."""
        target = self._resolve(path)
        return await asyncio.to_thread(target.is_file)
