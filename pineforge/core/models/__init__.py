"""
Domain models — Pydantic types for the response pipeline.

All models are re-exported here for convenient access:

    from pineforge.core.models import GenerationResponse, FilePlanItem, CommandResult
"""

from pineforge.core.models.commands import (
    CommandDirective,
    CommandOutput,
    CommandResult,
)
from pineforge.core.models.files import (
    AppliedFileRecord,
    FileOutcome,
    FilePlanItem,
)
from pineforge.core.models.response import (
    Credential,
    GenerationRequest,
    GenerationResponse,
)
from pineforge.core.models.rewards import (
    ActivityEvent,
    LedgerEntry,
    RewardAward,
    RewardSummary,
)

__all__ = [
    # rewards.py
    "ActivityEvent",
    # files.py
    "AppliedFileRecord",
    # commands.py
    "CommandDirective",
    "CommandOutput",
    "CommandResult",
    # response.py
    "Credential",
    "FileOutcome",
    "FilePlanItem",
    "GenerationRequest",
    "GenerationResponse",
    "LedgerEntry",
    "RewardAward",
    "RewardSummary",
]
