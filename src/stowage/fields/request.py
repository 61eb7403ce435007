"""RequestAction — translates a form submission into field operations.

Expected request parts:
- ``paths.action`` in the body mapping: ``"delete"`` or ``"reset"``
- ``paths.upload`` in the file-set mapping: the uploaded file

An action and an upload may arrive together. They run in that order, so
a submission can clear the old artifact and store a replacement in one
call.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from stowage.fields.definition import FieldPaths
from stowage.fields.move import MoveOperation
from stowage.fields.state import ArtifactState
from stowage.models.stored_file import StoredMetadata
from stowage.models.upload import UploadDescriptor
from stowage.records.store import Record

logger = logging.getLogger(__name__)

ACTION_DELETE = "delete"
ACTION_RESET = "reset"
_ACTIONS = frozenset({ACTION_DELETE, ACTION_RESET})


@dataclass(frozen=True)
class RequestOutcome:
    """What a handled request did.

    Attributes:
        action: "delete" or "reset" if an action token was applied.
        metadata: Metadata of the newly stored artifact, if one was uploaded.
    """

    action: str | None = None
    metadata: StoredMetadata | None = None

    @property
    def is_noop(self) -> bool:
        """True when the request neither applied an action nor uploaded."""
        return self.action is None and self.metadata is None


def select_action(token: Any) -> str | None:
    """Return "delete" or "reset" if the body field carries that token.

    Multi-valued fields use their first element; anything else that is
    not exactly one of the tokens is ignored.
    """
    if isinstance(token, Sequence) and not isinstance(token, (str, bytes)):
        token = token[0] if token else None
    if isinstance(token, str) and token in _ACTIONS:
        return token
    return None


def select_upload(entry: Any) -> UploadDescriptor | None:
    """Pick the single upload carried by a file-set slot.

    Multi-valued slots use their first element; empty slots count as absent.
    """
    if entry is None:
        return None
    if isinstance(entry, Sequence) and not isinstance(entry, (str, bytes)):
        if not entry:
            return None
        entry = entry[0]
    return UploadDescriptor.from_inbound(entry)


class RequestAction:
    """Dispatches inbound requests for one field."""

    def __init__(self, paths: FieldPaths, state: ArtifactState, mover: MoveOperation) -> None:
        self._paths = paths
        self._state = state
        self._mover = mover

    async def handle(
        self,
        record: Record,
        body: Mapping[str, Any] | None,
        files: Mapping[str, Any] | None,
        paths: FieldPaths | None = None,
    ) -> RequestOutcome:
        """Apply the action token and/or upload found in a request.

        Args:
            record: Record the field belongs to.
            body: Decoded form fields.
            files: Decoded file set, keyed by upload slot.
            paths: Custom request slots; defaults to the field's own.

        Returns:
            RequestOutcome describing what was applied.

        Raises:
            StowageError: Any failure of the delete or upload stages.
        """
        paths = paths or self._paths

        action = select_action(body.get(paths.action)) if body else None
        if action is not None:
            logger.debug("Applying %s action to %s", action, paths.key)
            if action == ACTION_DELETE:
                await self._state.delete(record)
            else:
                self._state.reset(record)

        descriptor = select_upload(files.get(paths.upload)) if files else None
        if descriptor is None:
            return RequestOutcome(action=action)

        metadata = await self._mover.upload(record, descriptor, apply_to_record=True)
        return RequestOutcome(action=action, metadata=metadata)

    def get_request_handler(
        self,
        record: Record,
        body: Mapping[str, Any] | None,
        files: Mapping[str, Any] | None,
        paths: FieldPaths | None = None,
    ) -> Callable[[], Awaitable[RequestOutcome]]:
        """Return a zero-argument coroutine function that handles the request."""

        async def handler() -> RequestOutcome:
            return await self.handle(record, body, files, paths)

        return handler
