"""
Generation request/response models — the pipeline's I/O contract.

A ``GenerationResponse`` is produced by the generation collaborator and
then mutated in place by each stage (commands, file plan, rewards)
before being returned to the caller exactly once.
"""

from __future__ import annotations

import uuid
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from pineforge.core.models.commands import CommandResult
from pineforge.core.models.files import AppliedFileRecord, FilePlanItem

ChatTag = Literal["plan", "feature", "customer", "revenue", "ask"]


def new_thread_id() -> str:
    """Generate a fresh conversation thread identifier."""
    return uuid.uuid4().hex


class Credential(BaseModel):
    """An authenticated caller.

    ``token`` is forwarded to collaborators that act on the caller's
    behalf; ``user_id`` is the principal the ledger credits.
    """

    model_config = ConfigDict(frozen=True)

    token: str
    user_id: str = ""

    @property
    def authenticated(self) -> bool:
        return bool(self.token and self.user_id)

    def __repr__(self) -> str:
        # Never leak the token into logs
        return f"Credential(user_id={self.user_id!r})"


class GenerationRequest(BaseModel):
    """One inbound generation request (camelCase aliases accepted)."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = ""
    model: str | None = None
    context: dict[str, Any] = Field(default_factory=dict)
    project_id: str | None = Field(default=None, alias="projectId")
    idempotency_key: str | None = Field(default=None, alias="idempotencyKey")
    tag: ChatTag | None = None
    thread_id: str | None = Field(default=None, alias="threadId")

    @property
    def effective_project_id(self) -> str | None:
        """Project that commands, file writes and rewards target.

        Only the top-level ``project_id`` counts; ``context`` is handed to
        generation as-is and never selects a project.
        """
        return self.project_id or None

    @property
    def effective_idempotency_key(self) -> str | None:
        return self.idempotency_key or None


class GenerationResponse(BaseModel):
    """The assistant reply plus everything the pipeline attached to it."""

    message: str = ""
    file_plan: list[FilePlanItem] = Field(default_factory=list)
    thread_id: str = ""

    # Attached by the stages; None means the stage did not engage
    run_command_results: list[CommandResult] | None = None
    applied_files: list[AppliedFileRecord] | None = None
    pineapples_earned: int | None = None
    new_balance: int | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the outward camelCase wire contract."""
        payload: dict[str, Any] = {
            "message": self.message,
            "threadId": self.thread_id,
        }
        if self.file_plan:
            payload["filePlan"] = [i.model_dump(mode="json") for i in self.file_plan]
        if self.run_command_results is not None:
            payload["runCommandResults"] = [
                r.to_payload() for r in self.run_command_results
            ]
        if self.applied_files is not None:
            payload["appliedFiles"] = [
                {"path": f.path, "action": f.action} for f in self.applied_files
            ]
        if self.pineapples_earned is not None:
            payload["pineapplesEarned"] = self.pineapples_earned
        if self.new_balance is not None:
            payload["newBalance"] = self.new_balance
        return payload
