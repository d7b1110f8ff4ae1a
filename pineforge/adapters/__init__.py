"""Adapters — collaborator bindings for the response pipeline.

Public re-exports for convenient access.
"""

from pineforge.adapters.base import (
    ActivityAdapter,
    Collaborator,
    Collaborators,
    GenerationAdapter,
    LedgerAdapter,
    SandboxAdapter,
    StorageAdapter,
)
from pineforge.adapters.mock import MockGeneration, MockSandbox, MockStorage
from pineforge.adapters.scripted import ScriptedGeneration
from pineforge.adapters.workspace import WorkspaceAdapter

__all__ = [
    "ActivityAdapter",
    "Collaborator",
    "Collaborators",
    "GenerationAdapter",
    "LedgerAdapter",
    "MockGeneration",
    "MockSandbox",
    "MockStorage",
    "SandboxAdapter",
    "ScriptedGeneration",
    "StorageAdapter",
    "WorkspaceAdapter",
]
