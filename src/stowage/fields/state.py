"""ArtifactState — derived state over a record's stored metadata.

Nothing is cached: every call reads the record's current metadata, so
``exists`` and ``public_location`` can never drift from what is stored.
"""

from __future__ import annotations

import logging
import os
import posixpath
from typing import Any

from stowage.fields.definition import FieldDefinition
from stowage.models.stored_file import StoredMetadata
from stowage.records.store import Record
from stowage.storage.file_store import FileStore

logger = logging.getLogger(__name__)


class ArtifactState:
    """Reads and clears the artifact metadata of one field."""

    def __init__(self, definition: FieldDefinition, store: FileStore) -> None:
        self._definition = definition
        self._store = store

    def metadata(self, record: Record) -> StoredMetadata:
        """Return the metadata currently stored on ``record``."""
        key = self._definition.key
        return StoredMetadata.from_record_value(record.get(key), field_key=key)

    @staticmethod
    def artifact_path(metadata: StoredMetadata) -> str:
        """Return the storage address of the artifact described by ``metadata``."""
        return os.path.join(metadata.storage_path, metadata.file_name)

    async def exists(self, record: Record) -> bool:
        """Return True if the record describes an artifact that is present.

        With ``verify_presence`` disabled the metadata alone decides.
        """
        metadata = self.metadata(record)
        if not metadata.file_name or not metadata.storage_path:
            return False
        if not self._definition.config.verify_presence:
            return True
        return await self._store.exists(self.artifact_path(metadata))

    def public_location(self, record: Record) -> str:
        """Return the public address of the artifact, or "" if there is none."""
        metadata = self.metadata(record)
        if not metadata.file_name:
            return ""
        base = self._definition.config.prefix or metadata.storage_path
        return posixpath.join(base, metadata.file_name)

    def reset(self, record: Record) -> None:
        """Clear the stored metadata without touching the artifact."""
        record.set(self._definition.key, StoredMetadata.empty().to_dict())
        logger.debug("Reset %s metadata", self._definition.key)

    async def delete(self, record: Record) -> None:
        """Delete the artifact if present, then clear the metadata.

        Raises:
            RelocationFailedError: If the store cannot delete the artifact;
                the metadata is left untouched in that case.
        """
        if await self.exists(record):
            metadata = self.metadata(record)
            await self._store.delete_file(self.artifact_path(metadata))
            logger.info("Deleted %s artifact %s", self._definition.key, metadata.file_name)
        self.reset(record)

    def file_data(self, record: Record) -> dict[str, Any]:
        """Return the stored metadata plus its public location, for display."""
        data: dict[str, Any] = self.metadata(record).to_dict()
        data["href"] = self.public_location(record)
        return data
