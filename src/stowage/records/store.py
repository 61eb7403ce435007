"""Record collaborator protocol and an in-memory reference implementation.

The upload pipeline never owns records. It reads and writes the metadata
of one field through the Record protocol, addressing values by dotted
paths (``avatar.file_name``). Writing a mapping to a path replaces every
sub-field under it in one step.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Record(Protocol):
    """Protocol for records that embed file metadata."""

    def get(self, path: str) -> Any:
        """Return the value at a dotted path, or None if unset."""
        ...

    def set(self, path: str, value: Any) -> None:
        """Set the value at a dotted path.

        A mapping value atomically replaces everything stored under ``path``.
        """
        ...

    def is_modified(self, path: str) -> bool:
        """Return True if ``path`` changed since the record was loaded."""
        ...


class InMemoryRecord:
    """Dictionary-backed record with modified-path tracking.

    Suitable for tests and for callers that persist records themselves:
    ``modified_paths`` lists every dotted path written since construction
    or the last ``mark_clean()``.
    """

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        *,
        record_id: str | None = None,
    ) -> None:
        self._data: dict[str, Any] = copy.deepcopy(dict(data or {}))
        self._modified: set[str] = set()
        self.record_id = record_id

    def get(self, path: str) -> Any:
        node: Any = self._data
        for segment in path.split("."):
            if not isinstance(node, Mapping) or segment not in node:
                return None
            node = node[segment]
        return copy.deepcopy(node)

    def set(self, path: str, value: Any) -> None:
        segments = path.split(".")
        node = self._data
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child

        if isinstance(value, Mapping):
            node[segments[-1]] = copy.deepcopy(dict(value))
            self._modified.update(f"{path}.{key}" for key in value)
        else:
            node[segments[-1]] = value
        self._modified.add(path)
        logger.debug("Record %s set %s", self.record_id, path)

    def is_modified(self, path: str) -> bool:
        prefix = f"{path}."
        return any(p == path or p.startswith(prefix) for p in self._modified)

    @property
    def modified_paths(self) -> frozenset[str]:
        """Return the dotted paths written since the last mark_clean()."""
        return frozenset(self._modified)

    def mark_clean(self) -> None:
        """Forget modification state, e.g. after the record was persisted."""
        self._modified.clear()

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the record data."""
        return copy.deepcopy(self._data)

    def __repr__(self) -> str:
        return f"InMemoryRecord(record_id={self.record_id!r})"
