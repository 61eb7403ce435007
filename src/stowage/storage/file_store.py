"""Stowage FileStore interface definition.

The physical storage collaborator used by the upload pipeline. Backends
must make each move atomic-or-erroring: a failed move leaves no partial
artifact at the destination.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class FileStore(ABC):
    """Abstract base class for physical storage backends.

    Implementations:
    - LocalFileStore: Local filesystem
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend identifier for observability."""
        ...

    @abstractmethod
    async def move_file(self, source: str, destination: str, *, overwrite: bool) -> None:
        """Move a staged file to its durable destination.

        Args:
            source: Staging location of the payload.
            destination: Final location of the artifact.
            overwrite: Replace an existing artifact at ``destination``.

        Raises:
            DestinationExistsError: If ``destination`` exists and overwrite is False.
            PathTraversalError: If either path escapes the backend sandbox.
            RelocationFailedError: If the backend cannot complete the move.
        """
        ...

    @abstractmethod
    async def delete_file(self, path: str) -> None:
        """Delete the artifact at ``path``.

        Raises:
            PathTraversalError: If ``path`` escapes the backend sandbox.
            RelocationFailedError: If the artifact is missing or cannot be removed.
        """
        ...

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """Return True if an artifact is present at ``path``."""
        ...
