"""Stowage physical storage abstraction.

Backends:
- LocalFileStore: Local filesystem

Environment Variables:
    STOWAGE_FILE_STORE_BASE_DIR: Sandbox directory for LocalFileStore
"""

from stowage.storage.file_store import FileStore
from stowage.storage.filesystem_store import LocalFileStore

__all__ = ["FileStore", "LocalFileStore"]
