"""Stowage data models."""

from stowage.models.stored_file import StoredMetadata
from stowage.models.upload import UploadDescriptor

__all__ = ["StoredMetadata", "UploadDescriptor"]
