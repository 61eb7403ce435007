"""Ordered hook chains around the physical move.

Pre-move hooks may veto an upload before any side effect; post-move hooks
observe a relocation that already happened. Each chain is driven by
``run_hook_chain``, which awaits hooks strictly one at a time in
registration order. The only suspension points are between hook N and
hook N+1.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from stowage.errors import ConfigurationError, HookRejectedError, UnsupportedPhaseError
from stowage.models.stored_file import StoredMetadata
from stowage.models.upload import UploadDescriptor

logger = logging.getLogger(__name__)


class HookPhase(str, Enum):
    """Pipeline points where hooks run."""

    PRE_MOVE = "pre-move"
    POST_MOVE = "post-move"

    @classmethod
    def parse(cls, phase: HookPhase | str, *, field_key: str | None = None) -> HookPhase:
        """Coerce a phase name, raising UnsupportedPhaseError for unknown values."""
        try:
            return cls(phase)
        except ValueError as e:
            raise UnsupportedPhaseError(phase, field_key=field_key) from e


@dataclass(frozen=True)
class HookContext:
    """Arguments handed to a hook invocation.

    Attributes:
        record: The record being updated. Hooks may mutate it.
        descriptor: The inbound upload. Immutable.
        metadata: Final metadata (post-move hooks only).
    """

    record: Any
    descriptor: UploadDescriptor
    metadata: StoredMetadata | None = None


@runtime_checkable
class Hook(Protocol):
    """Capability interface for pipeline hooks.

    ``invoke`` signals rejection by raising; returning normally lets the
    chain continue.
    """

    name: str

    async def invoke(self, context: HookContext) -> None: ...


class FunctionHook:
    """Adapts a plain callable to the Hook interface.

    Pre-move callables receive ``(record, descriptor)``; post-move callables
    receive ``(record, descriptor, metadata)``. Coroutine functions and
    callables returning awaitables are awaited.
    """

    def __init__(self, fn: Callable[..., Any], *, name: str | None = None) -> None:
        self._fn = fn
        self.name = name or getattr(fn, "__qualname__", None) or repr(fn)

    async def invoke(self, context: HookContext) -> None:
        if context.metadata is None:
            result = self._fn(context.record, context.descriptor)
        else:
            result = self._fn(context.record, context.descriptor, context.metadata)
        if inspect.isawaitable(result):
            await result

    def __repr__(self) -> str:
        return f"FunctionHook(name={self.name!r})"


def as_hook(hook: Hook | Callable[..., Any]) -> Hook:
    """Return ``hook`` as a Hook, wrapping plain callables."""
    if isinstance(hook, Hook):
        return hook
    if not callable(hook):
        raise ConfigurationError(f"Hook {hook!r} is not callable")
    return FunctionHook(hook)


class HookRegistry:
    """Append-only hook chains for one file field.

    Registration is a setup-phase API: once ``freeze()`` has been called
    (the first upload does it) further registrations are rejected.
    Executions read tuple snapshots, so a chain cannot change under an
    upload in flight.
    """

    def __init__(self, *, field_key: str | None = None) -> None:
        self._field_key = field_key
        self._chains: dict[HookPhase, list[Hook]] = {phase: [] for phase in HookPhase}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        """True once the registry no longer accepts hooks."""
        return self._frozen

    def register(self, phase: HookPhase | str, hook: Hook | Callable[..., Any]) -> Hook:
        """Append a hook to the chain for ``phase``.

        Raises:
            UnsupportedPhaseError: If ``phase`` is not a HookPhase.
            ConfigurationError: If the registry is frozen or hook is not callable.
        """
        resolved = HookPhase.parse(phase, field_key=self._field_key)
        if self._frozen:
            raise ConfigurationError(
                "Hooks cannot be registered after the first upload has started",
                field_key=self._field_key,
            )
        adapted = as_hook(hook)
        self._chains[resolved].append(adapted)
        logger.debug("Registered %s hook %s", resolved.value, adapted.name)
        return adapted

    def extend(self, phase: HookPhase | str, hooks: Iterable[Hook | Callable[..., Any]]) -> None:
        """Register several hooks in order."""
        for hook in hooks:
            self.register(phase, hook)

    def freeze(self) -> None:
        """Reject all further registrations."""
        self._frozen = True

    def snapshot(self, phase: HookPhase | str) -> tuple[Hook, ...]:
        """Return the current chain for ``phase`` as an immutable tuple."""
        return tuple(self._chains[HookPhase.parse(phase, field_key=self._field_key)])


async def run_hook_chain(
    phase: HookPhase,
    hooks: tuple[Hook, ...],
    context: HookContext,
    *,
    field_key: str | None = None,
) -> None:
    """Run ``hooks`` sequentially, stopping at the first failure.

    Raises:
        HookRejectedError: Wrapping the first hook error. For post-move
            chains the error carries ``context.metadata``.
    """
    for index, hook in enumerate(hooks):
        logger.debug("Running %s hook %d/%d: %s", phase.value, index + 1, len(hooks), hook.name)
        try:
            await hook.invoke(context)
        except Exception as e:
            logger.warning("%s hook %s rejected upload: %s", phase.value, hook.name, e)
            raise HookRejectedError(
                phase.value,
                hook.name,
                cause=e,
                metadata=context.metadata,
                field_key=field_key,
            ) from e
