"""
Pipeline errors — the exception taxonomy shared by every stage.

Caller-input problems raise ``BadRequest`` before any side effect.
Collaborator problems surface as ``CollaboratorError`` (or a subclass)
and are isolated per item by the stage that made the call.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for all pipeline errors.

    Carries an HTTP-ish ``status_code`` and a stable machine ``code`` so
    the web layer can map errors without inspecting messages.
    """

    status_code = 500
    code = "PIPELINE_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        if code:
            self.code = code

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code}


class BadRequest(PipelineError):
    """Caller supplied an unusable request (missing prompt, bad tag)."""

    status_code = 400
    code = "BAD_REQUEST"


class CollaboratorError(PipelineError):
    """An external collaborator (sandbox, storage, generation) failed."""

    status_code = 502
    code = "COLLABORATOR_ERROR"


class LedgerError(CollaboratorError):
    """The reward ledger refused or failed an award."""

    code = "LEDGER_ERROR"


class CallTimeout(CollaboratorError):
    """A bounded collaborator call did not finish in time."""

    status_code = 504
    code = "TIMEOUT"
