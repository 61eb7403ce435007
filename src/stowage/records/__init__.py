"""Record collaborator interface."""

from stowage.records.store import InMemoryRecord, Record

__all__ = ["InMemoryRecord", "Record"]
