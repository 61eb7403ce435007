"""MoveOperation — the upload pipeline.

Stages, strictly sequential, short-circuiting on the first failure:
1. Type validation (no side effects)
2. Pre-move hooks (may veto; nothing relocated on failure)
3. Name resolution (date prefix, then naming policy)
4. Physical relocation (the one irreversible step)
5. Metadata construction
6. Optional record update (single mapping write)
7. Post-move hooks (observe only; failure does not roll back)
8. Return the metadata
"""

from __future__ import annotations

import logging
import os

from stowage.errors import (
    NamingPolicyError,
    PathTraversalError,
    RelocationFailedError,
    StowageError,
    UnsupportedFileTypeError,
)
from stowage.fields.definition import FieldDefinition
from stowage.fields.hooks import HookContext, HookPhase, run_hook_chain
from stowage.models.stored_file import StoredMetadata
from stowage.models.upload import UploadDescriptor
from stowage.observability.tracing import get_tracer
from stowage.records.store import Record
from stowage.storage.file_store import FileStore

logger = logging.getLogger(__name__)


def _is_path_traversal(name: object) -> bool:
    """Check if a resolved file name would escape the destination.

    Detects:
    - Non-string names
    - Empty names
    - Null bytes
    - Backslashes (Windows path separators)
    - Absolute paths (leading / or ~, drive letters like C:)
    - ".." segments
    """
    if not isinstance(name, str) or not name or "\x00" in name or "\\" in name:
        return True
    if name.startswith("/") or name.startswith("~"):
        return True
    if len(name) >= 2 and name[1] == ":":
        return True
    return any(segment in ("..", "") for segment in name.split("/"))


class MoveOperation:
    """Relocates staged uploads for one field and records their metadata."""

    def __init__(self, definition: FieldDefinition, store: FileStore) -> None:
        self._definition = definition
        self._store = store

    async def upload(
        self,
        record: Record,
        descriptor: UploadDescriptor,
        apply_to_record: bool = False,
    ) -> StoredMetadata:
        """Run the upload pipeline for one staged file.

        Args:
            record: Record the upload belongs to; passed to hooks and the
                naming policy, and updated when ``apply_to_record`` is set.
            descriptor: The staged upload.
            apply_to_record: Write the resulting metadata onto ``record``.

        Returns:
            Metadata of the stored artifact.

        Raises:
            UnsupportedFileTypeError: Content type not allowed.
            HookRejectedError: A pre- or post-move hook failed.
            NamingPolicyError: The naming policy raised.
            PathTraversalError: The resolved name is not a safe relative name.
            DestinationExistsError: Collision while overwriting is disabled.
            RelocationFailedError: The store could not move the file.
        """
        definition = self._definition
        key = definition.key

        if not definition.is_type_allowed(descriptor.content_type):
            raise UnsupportedFileTypeError(descriptor.content_type, field_key=key)

        definition.hooks.freeze()
        pre_hooks = definition.hooks.snapshot(HookPhase.PRE_MOVE)
        post_hooks = definition.hooks.snapshot(HookPhase.POST_MOVE)
        candidate = definition.candidate_name(descriptor.declared_name)

        tracer = get_tracer("stowage.upload")
        with tracer.start_as_current_span("stowage.upload") as span:
            span.set_attribute("stowage.field", key)
            span.set_attribute("stowage.size_bytes", descriptor.size)
            span.set_attribute("stowage.content_type", descriptor.content_type)

            await run_hook_chain(
                HookPhase.PRE_MOVE,
                pre_hooks,
                HookContext(record=record, descriptor=descriptor),
                field_key=key,
            )

            try:
                final_name = definition.resolve_name(record, candidate)
            except Exception as e:
                logger.warning("Naming policy for %s failed: %s", key, e)
                raise NamingPolicyError(candidate, field_key=key) from e
            if _is_path_traversal(final_name):
                raise PathTraversalError(
                    message="Invalid file name: path traversal detected",
                    path=str(final_name),
                    field_key=key,
                )

            await self._relocate(descriptor, final_name)

            metadata = StoredMetadata(
                file_name=final_name,
                storage_path=definition.destination,
                size=descriptor.size,
                content_type=descriptor.content_type,
            )

            if apply_to_record:
                record.set(key, metadata.to_dict())

            logger.info(
                "Stored %s upload as %s (%d bytes, applied=%s)",
                key,
                final_name,
                descriptor.size,
                apply_to_record,
            )

            await run_hook_chain(
                HookPhase.POST_MOVE,
                post_hooks,
                HookContext(record=record, descriptor=descriptor, metadata=metadata),
                field_key=key,
            )

        return metadata

    async def _relocate(self, descriptor: UploadDescriptor, final_name: str) -> None:
        destination = os.path.join(self._definition.destination, final_name)
        logger.debug("Moving %s to %s", descriptor.staging_path, destination)
        try:
            await self._store.move_file(
                descriptor.staging_path,
                destination,
                overwrite=self._definition.config.overwrite,
            )
        except StowageError as e:
            if e.field_key is None:
                e.field_key = self._definition.key
            raise
        except OSError as e:
            raise RelocationFailedError(
                message=f"Failed to move upload: {e}",
                path=destination,
                cause=e,
                field_key=self._definition.key,
            ) from e

