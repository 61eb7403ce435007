"""FieldDefinition — configuration and hook registries for one file field."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from stowage.errors import UnsupportedPhaseError
from stowage.fields.config import FieldConfig
from stowage.fields.hooks import Hook, HookPhase, HookRegistry

logger = logging.getLogger(__name__)

_MOVE_EVENT = "move"


@dataclass(frozen=True)
class FieldPaths:
    """Record paths and request slots owned by a file field.

    Attributes:
        file_name: Stored file name path.
        storage_path: Stored directory path.
        size: Stored size path.
        content_type: Stored MIME type path.
        exists: Virtual path reporting artifact presence.
        href: Virtual path reporting the public location.
        upload: Request file-set slot carrying the upload.
        action: Request body field carrying the action token.
    """

    key: str
    file_name: str
    storage_path: str
    size: str
    content_type: str
    exists: str
    href: str
    upload: str
    action: str

    @classmethod
    def for_key(cls, key: str) -> FieldPaths:
        """Derive the standard paths for a field stored under ``key``."""
        return cls(
            key=key,
            file_name=f"{key}.file_name",
            storage_path=f"{key}.storage_path",
            size=f"{key}.size",
            content_type=f"{key}.content_type",
            exists=f"{key}.exists",
            href=f"{key}.href",
            upload=f"{key}_upload",
            action=f"{key}_action",
        )


class FieldDefinition:
    """Configured destination, naming policy, type filter and hooks.

    Built once at setup time. Hooks from the ``pre``/``post`` options are
    registered first; more may be added with ``register_hook`` (or the
    ``pre``/``post`` shorthands) until the first upload starts.

    Args:
        key: Record key the field's metadata lives under.
        options: Raw configuration, validated into a FieldConfig.
        clock: Returns the current time for date prefixes (UTC by default).

    Raises:
        ConfigurationError: If the options are invalid or lack a destination.
    """

    def __init__(
        self,
        key: str,
        options: Mapping[str, Any] | FieldConfig,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.key = key
        if isinstance(options, FieldConfig):
            self.config = options
        else:
            self.config = FieldConfig.from_options(options, field_key=key)
        self.paths = FieldPaths.for_key(key)
        self._clock = clock or (lambda: datetime.now(UTC))

        self.hooks = HookRegistry(field_key=key)
        self.hooks.extend(HookPhase.PRE_MOVE, self.config.pre)
        self.hooks.extend(HookPhase.POST_MOVE, self.config.post)

        logger.debug(
            "FieldDefinition %s: destination=%s overwrite=%s allowed_types=%s",
            key,
            self.config.destination,
            self.config.overwrite,
            sorted(self.config.allowed_types),
        )

    @property
    def destination(self) -> str:
        """Return the configured destination."""
        return self.config.destination

    def register_hook(
        self, phase: HookPhase | str, hook: Hook | Callable[..., Any]
    ) -> FieldDefinition:
        """Append a hook to the ``pre-move`` or ``post-move`` chain.

        Raises:
            UnsupportedPhaseError: If ``phase`` is not a known phase.
            ConfigurationError: If uploads have already started.
        """
        self.hooks.register(phase, hook)
        return self

    def pre(self, event: str, hook: Hook | Callable[..., Any]) -> FieldDefinition:
        """Register a hook to run before ``event``; only "move" is supported."""
        if event != _MOVE_EVENT:
            raise UnsupportedPhaseError(f"pre:{event}", field_key=self.key)
        return self.register_hook(HookPhase.PRE_MOVE, hook)

    def post(self, event: str, hook: Hook | Callable[..., Any]) -> FieldDefinition:
        """Register a hook to run after ``event``; only "move" is supported."""
        if event != _MOVE_EVENT:
            raise UnsupportedPhaseError(f"post:{event}", field_key=self.key)
        return self.register_hook(HookPhase.POST_MOVE, hook)

    def is_type_allowed(self, content_type: str) -> bool:
        """Return True if ``content_type`` passes the allowed-type filter."""
        allowed = self.config.allowed_types
        return not allowed or content_type in allowed

    def candidate_name(self, declared_name: str) -> str:
        """Apply the optional date prefix to a declared file name."""
        if not self.config.date_prefix:
            return declared_name
        return f"{self._clock().strftime(self.config.date_prefix)}-{declared_name}"

    def resolve_name(self, record: Any, candidate: str) -> str:
        """Apply the naming policy, if any, to a candidate name."""
        if self.config.filename is None:
            return candidate
        return self.config.filename(record, candidate)

    def __repr__(self) -> str:
        return f"FieldDefinition(key={self.key!r}, destination={self.config.destination!r})"
