"""UploadDescriptor — transient description of one inbound file payload."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

_NAME_KEYS = ("name", "originalname", "filename")
_TYPE_KEYS = ("mimetype", "type", "content_type")


def _first_present(entry: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = entry.get(key)
        if value:
            return value
    return None


@dataclass(frozen=True)
class UploadDescriptor:
    """A staged upload waiting to be relocated.

    Lives for the duration of a single upload call and is never persisted.
    Frozen so hooks cannot alter it after validation.

    Attributes:
        staging_path: Where the multipart decoder left the payload.
        declared_name: File name supplied by the client.
        content_type: MIME type supplied by the client.
        size: Payload size in bytes.
    """

    staging_path: str
    declared_name: str
    content_type: str
    size: int = 0

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError(f"size must be non-negative, got {self.size}")

    @classmethod
    def from_inbound(cls, entry: UploadDescriptor | Mapping[str, Any]) -> UploadDescriptor:
        """Build a descriptor from a decoded multipart file entry.

        Accepts the keys produced by common multipart decoders: ``path``,
        ``name``/``originalname``/``filename``, ``mimetype``/``type``/
        ``content_type`` and ``size``. Descriptors pass through unchanged.

        Raises:
            ValueError: If the entry has no staging path or name.
        """
        if isinstance(entry, UploadDescriptor):
            return entry

        staging_path = entry.get("path") or entry.get("staging_path")
        if not staging_path:
            raise ValueError("Inbound file entry has no staging path")

        declared_name = _first_present(entry, _NAME_KEYS) or Path(str(staging_path)).name
        content_type = _first_present(entry, _TYPE_KEYS) or ""
        size_raw = entry.get("size")
        size = int(size_raw) if size_raw is not None else 0

        return cls(
            staging_path=str(staging_path),
            declared_name=str(declared_name),
            content_type=str(content_type),
            size=size,
        )
