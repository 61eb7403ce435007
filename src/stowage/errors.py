"""Stowage error types.

Every failure in the upload pipeline is surfaced as a subclass of
StowageError. Stage failures short-circuit the remaining stages and are
re-raised with the originating exception chained as ``__cause__``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from stowage.models.stored_file import StoredMetadata


class StowageError(Exception):
    """Base exception for upload pipeline failures.

    Attributes:
        message: Human-readable error message.
        field_key: Key of the file field the failure belongs to (if known).
    """

    def __init__(self, message: str, *, field_key: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field_key = field_key

    def __str__(self) -> str:
        parts = [self.message]
        if self.field_key:
            parts.append(f"field={self.field_key}")
        return " ".join(parts)


class ConfigurationError(StowageError):
    """Raised when a file field is configured incorrectly.

    Fatal at construction or registration time; never retried.
    """


class UnsupportedPhaseError(ConfigurationError):
    """Raised when a hook is registered for a phase that does not exist."""

    def __init__(self, phase: Any, *, field_key: str | None = None) -> None:
        super().__init__(f"Hook phase {phase!r} is not supported", field_key=field_key)
        self.phase = phase


class UnsupportedFileTypeError(StowageError):
    """Raised when an upload's content type is not in the allowed set.

    Raised before any side effect, so retrying with another file is safe.
    """

    def __init__(self, content_type: str, *, field_key: str | None = None) -> None:
        super().__init__(f"Unsupported file type: {content_type}", field_key=field_key)
        self.content_type = content_type


class DestinationExistsError(StowageError):
    """Raised when the destination is occupied and overwriting is disabled."""

    def __init__(
        self,
        message: str = "Destination already exists",
        *,
        path: str | None = None,
        field_key: str | None = None,
    ) -> None:
        super().__init__(message, field_key=field_key)
        self.path = path

    def __str__(self) -> str:
        text = super().__str__()
        if self.path:
            text = f"{text} path={self.path}"
        return text


class RelocationFailedError(StowageError):
    """Raised when the storage backend cannot move or delete an artifact.

    No metadata is written when this is raised from the move stage.
    """

    def __init__(
        self,
        message: str = "Storage operation failed",
        *,
        path: str | None = None,
        cause: Exception | None = None,
        field_key: str | None = None,
    ) -> None:
        super().__init__(message, field_key=field_key)
        self.path = path
        self.cause = cause

    def __str__(self) -> str:
        text = super().__str__()
        if self.path:
            text = f"{text} path={self.path}"
        return text


class PathTraversalError(StowageError):
    """Raised when a file name or path would escape its storage location.

    Detected before any storage call is made.
    """

    def __init__(
        self,
        message: str = "Invalid path: traversal detected",
        *,
        path: str | None = None,
        field_key: str | None = None,
    ) -> None:
        super().__init__(message, field_key=field_key)
        self.path = path


class HookRejectedError(StowageError):
    """Raised when a pre-move or post-move hook fails.

    A pre-move rejection guarantees nothing was relocated. A post-move
    rejection means the artifact (and, if applied, the record metadata) is
    already committed; ``metadata`` then holds what was committed.

    Attributes:
        phase: "pre-move" or "post-move".
        hook_name: Display name of the hook that failed.
        metadata: Committed metadata for post-move failures, else None.
    """

    def __init__(
        self,
        phase: str,
        hook_name: str,
        *,
        cause: BaseException | None = None,
        metadata: StoredMetadata | None = None,
        field_key: str | None = None,
    ) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(
            f"{phase} hook {hook_name} rejected the upload{detail}",
            field_key=field_key,
        )
        self.phase = phase
        self.hook_name = hook_name
        self.cause = cause
        self.metadata = metadata


class NamingPolicyError(StowageError):
    """Raised when the configured naming policy fails to produce a name.

    Raised before relocation; the staged file is left in place.
    """

    def __init__(self, candidate: str, *, field_key: str | None = None) -> None:
        super().__init__(f"Naming policy failed for {candidate!r}", field_key=field_key)
        self.candidate = candidate


class InvalidMetadataError(StowageError):
    """Raised when a record holds file metadata that cannot be read back."""
