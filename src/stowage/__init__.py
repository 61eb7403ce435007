"""Stowage: upload relocation pipeline for record file fields.

Validates an inbound upload, moves it from staging to a durable
destination, records the stored artifact's metadata on a record, and runs
ordered pre-move/post-move hooks around the move.
"""

from stowage.errors import (
    ConfigurationError,
    DestinationExistsError,
    HookRejectedError,
    InvalidMetadataError,
    NamingPolicyError,
    PathTraversalError,
    RelocationFailedError,
    StowageError,
    UnsupportedFileTypeError,
    UnsupportedPhaseError,
)
from stowage.fields import FieldConfig, FileField, HookPhase, RequestOutcome
from stowage.models import StoredMetadata, UploadDescriptor
from stowage.records import InMemoryRecord, Record
from stowage.storage import FileStore, LocalFileStore

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DestinationExistsError",
    "FieldConfig",
    "FileField",
    "FileStore",
    "HookPhase",
    "HookRejectedError",
    "InMemoryRecord",
    "InvalidMetadataError",
    "LocalFileStore",
    "NamingPolicyError",
    "PathTraversalError",
    "Record",
    "RelocationFailedError",
    "RequestOutcome",
    "StoredMetadata",
    "StowageError",
    "UnsupportedFileTypeError",
    "UnsupportedPhaseError",
    "UploadDescriptor",
]
