"""
File plan models — planned file actions and their tagged outcomes.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

FileAction = Literal["create", "update", "delete"]
OutcomeStatus = Literal["applied", "skipped", "failed"]


class FilePlanItem(BaseModel):
    """One planned file action, immutable once produced by generation."""

    model_config = ConfigDict(frozen=True)

    path: str
    action: FileAction
    description: str = ""


class AppliedFileRecord(BaseModel):
    """A file action that reached the storage collaborator."""

    path: str                       # resolved path, not the planned one
    action: FileAction
    success: bool = True


class FileOutcome(BaseModel):
    """Tagged outcome of one plan item, in plan order."""

    item: FilePlanItem
    resolved_path: str
    status: OutcomeStatus
    error: str | None = None

    @property
    def applied(self) -> bool:
        return self.status == "applied"

    def to_record(self) -> AppliedFileRecord:
        return AppliedFileRecord(
            path=self.resolved_path,
            action=self.item.action,
            success=self.applied,
        )
