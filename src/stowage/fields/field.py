"""FileField — one file field on a record schema.

Composes FieldDefinition, ArtifactState, MoveOperation and RequestAction,
and exposes the capability interface a record-schema collaborator consumes:
``validate_input``, ``update_item`` and ``format``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime
from typing import Any

from stowage.fields.config import FieldConfig
from stowage.fields.definition import FieldDefinition, FieldPaths
from stowage.fields.hooks import Hook, HookPhase
from stowage.fields.move import MoveOperation
from stowage.fields.request import RequestAction, RequestOutcome
from stowage.fields.state import ArtifactState
from stowage.models.stored_file import StoredMetadata
from stowage.models.upload import UploadDescriptor
from stowage.records.store import Record
from stowage.storage.file_store import FileStore

logger = logging.getLogger(__name__)


class FileField:
    """A file field backed by a FileStore.

    Example:
        field = FileField("avatar", {"destination": "uploads/avatars"}, store)
        field.pre("move", check_quota)
        outcome = await field.handle_request(record, form, files)

    Args:
        key: Record key holding the field's metadata.
        options: Raw options or a FieldConfig.
        store: Physical storage collaborator.
        clock: Time source for date prefixes.

    Raises:
        ConfigurationError: If the options are invalid.
    """

    def __init__(
        self,
        key: str,
        options: Mapping[str, Any] | FieldConfig,
        store: FileStore,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.definition = FieldDefinition(key, options, clock=clock)
        self.state = ArtifactState(self.definition, store)
        self.mover = MoveOperation(self.definition, store)
        self.requests = RequestAction(self.definition.paths, self.state, self.mover)

    @property
    def key(self) -> str:
        return self.definition.key

    @property
    def paths(self) -> FieldPaths:
        return self.definition.paths

    # Hook registration

    def register_hook(self, phase: HookPhase | str, hook: Hook | Callable[..., Any]) -> FileField:
        self.definition.register_hook(phase, hook)
        return self

    def pre(self, event: str, hook: Hook | Callable[..., Any]) -> FileField:
        self.definition.pre(event, hook)
        return self

    def post(self, event: str, hook: Hook | Callable[..., Any]) -> FileField:
        self.definition.post(event, hook)
        return self

    # Derived state

    async def exists(self, record: Record) -> bool:
        return await self.state.exists(record)

    def href(self, record: Record) -> str:
        """Return the public location of the stored file, or ""."""
        return self.state.public_location(record)

    async def virtuals(self, record: Record) -> dict[str, Any]:
        """Return the computed ``exists`` and ``href`` values keyed by their paths."""
        return {
            self.paths.exists: await self.exists(record),
            self.paths.href: self.href(record),
        }

    def reset(self, record: Record) -> None:
        self.state.reset(record)

    async def delete(self, record: Record) -> None:
        await self.state.delete(record)

    def is_modified(self, record: Record) -> bool:
        """Return True if the stored path changed since the record was loaded."""
        return record.is_modified(self.paths.storage_path)

    # Schema capability interface

    def validate_input(self, data: Mapping[str, Any]) -> bool:
        """File fields accept any form data; uploads are validated on move."""
        return True

    def update_item(self, record: Record, data: Mapping[str, Any]) -> None:
        """Direct updates are ignored; metadata changes only through uploads."""
        logger.debug("Ignoring direct update of file field %s", self.key)

    def has_formatter(self) -> bool:
        return self.definition.config.format is not None

    def format(self, record: Record) -> str:
        """Render the field for display.

        Delegates to the ``format`` option when configured, passing the
        stored metadata plus its ``href``; otherwise returns the href.
        """
        if not self.state.metadata(record).file_name:
            return ""
        formatter = self.definition.config.format
        if formatter is not None:
            return formatter(record, self.state.file_data(record))
        return self.href(record)

    # Pipeline entry points

    async def upload(
        self,
        record: Record,
        descriptor: UploadDescriptor | Mapping[str, Any],
        apply_to_record: bool = False,
    ) -> StoredMetadata:
        """Relocate one staged upload; see MoveOperation.upload."""
        return await self.mover.upload(
            record, UploadDescriptor.from_inbound(descriptor), apply_to_record
        )

    def get_request_handler(
        self,
        record: Record,
        body: Mapping[str, Any] | None,
        files: Mapping[str, Any] | None,
        paths: FieldPaths | None = None,
    ) -> Callable[[], Awaitable[RequestOutcome]]:
        return self.requests.get_request_handler(record, body, files, paths)

    async def handle_request(
        self,
        record: Record,
        body: Mapping[str, Any] | None,
        files: Mapping[str, Any] | None,
        paths: FieldPaths | None = None,
    ) -> RequestOutcome:
        """Immediately handle a form submission (see get_request_handler)."""
        return await self.get_request_handler(record, body, files, paths)()

    def __repr__(self) -> str:
        return f"FileField(key={self.key!r}, destination={self.definition.destination!r})"
