"""File field pipeline: definition, derived state, move and request dispatch."""

from stowage.fields.config import FieldConfig
from stowage.fields.definition import FieldDefinition, FieldPaths
from stowage.fields.field import FileField
from stowage.fields.hooks import FunctionHook, Hook, HookContext, HookPhase, HookRegistry
from stowage.fields.move import MoveOperation
from stowage.fields.request import RequestAction, RequestOutcome
from stowage.fields.state import ArtifactState

__all__ = [
    "ArtifactState",
    "FieldConfig",
    "FieldDefinition",
    "FieldPaths",
    "FileField",
    "FunctionHook",
    "Hook",
    "HookContext",
    "HookPhase",
    "HookRegistry",
    "MoveOperation",
    "RequestAction",
    "RequestOutcome",
]
