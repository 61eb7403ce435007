"""StoredMetadata model — the four fields describing a stored artifact.

Embedded in a record under the owning field's key and written only by the
upload pipeline (MoveOperation) or by reset/delete (ArtifactState).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from stowage.errors import InvalidMetadataError


class StoredMetadata(BaseModel):
    """Metadata for the artifact stored at ``storage_path/file_name``.

    Either every field holds its zero value (no artifact) or both
    ``file_name`` and ``storage_path`` are non-empty. Partial states fail
    validation.

    Attributes:
        file_name: Final name of the artifact inside ``storage_path``.
        storage_path: Directory or bucket prefix holding the artifact.
        size: Size of the artifact in bytes.
        content_type: MIME type declared at upload time.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    file_name: Annotated[str, Field(default="", description="Stored file name")]
    storage_path: Annotated[str, Field(default="", description="Storage directory")]
    size: Annotated[int, Field(default=0, ge=0, description="Size in bytes")]
    content_type: Annotated[str, Field(default="", description="MIME type")]

    @model_validator(mode="after")
    def _check_addressable(self) -> StoredMetadata:
        if bool(self.file_name) != bool(self.storage_path):
            raise ValueError("file_name and storage_path must be set together")
        if not self.file_name and (self.size or self.content_type):
            raise ValueError("empty metadata cannot carry size or content_type")
        return self

    @classmethod
    def empty(cls) -> StoredMetadata:
        """Return the zero value (no artifact)."""
        return cls()

    @classmethod
    def from_record_value(cls, value: Any, *, field_key: str | None = None) -> StoredMetadata:
        """Build metadata from whatever a record holds at the field key.

        Missing or ``None`` values read as empty metadata.

        Raises:
            InvalidMetadataError: If the value is not a mapping or describes
                a partial artifact.
        """
        if value is None:
            return cls.empty()
        if isinstance(value, StoredMetadata):
            return value
        if not isinstance(value, Mapping):
            raise InvalidMetadataError(
                f"Stored metadata must be a mapping, got {type(value).__name__}",
                field_key=field_key,
            )
        try:
            return cls(
                file_name=value.get("file_name") or "",
                storage_path=value.get("storage_path") or "",
                size=value.get("size") or 0,
                content_type=value.get("content_type") or "",
            )
        except ValidationError as e:
            raise InvalidMetadataError(
                f"Stored metadata is invalid: {e.error_count()} error(s)",
                field_key=field_key,
            ) from e

    @property
    def is_empty(self) -> bool:
        """True when no artifact is described."""
        return not self.file_name

    def to_dict(self) -> dict[str, str | int]:
        """Convert to the mapping written onto a record."""
        return {
            "file_name": self.file_name,
            "storage_path": self.storage_path,
            "size": self.size,
            "content_type": self.content_type,
        }
