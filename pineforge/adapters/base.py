"""
Collaborator adapters — the contract between the pipeline and the outside.

The pipeline never talks to a model provider, a sandbox, a database or a
ledger directly.  It calls these interfaces, and each deployment plugs
in concrete adapters (the local ones in this package, or remote ones).

Unlike the stage code, adapters MAY raise: the calling stage decides
whether a failure is isolated to one item or suppressed entirely.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from pineforge.core.models.commands import CommandOutput
from pineforge.core.models.files import FileAction
from pineforge.core.models.response import (
    Credential,
    GenerationRequest,
    GenerationResponse,
)
from pineforge.core.models.rewards import ActivityEvent, RewardAward


class Collaborator(ABC):
    """Common base: every adapter has a name and an availability check."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter identifier used in logs (e.g. 'workspace', 'ledger')."""

    def is_available(self) -> bool:
        """Fast, non-raising availability check."""
        return True

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class GenerationAdapter(Collaborator):
    """Produces assistant replies and per-file content."""

    @abstractmethod
    def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Produce ``{message, file_plan}`` for a prompt."""

    @abstractmethod
    def generate_file_content(
        self,
        path: str,
        action: FileAction,
        description: str,
        current_content: str | None = None,
        model: str | None = None,
    ) -> str:
        """Produce the complete new content of one file."""


class SandboxAdapter(Collaborator):
    """Runs shell commands inside a project's execution environment."""

    @abstractmethod
    def run_command(
        self,
        credential: Credential,
        project_id: str,
        command: str,
    ) -> CommandOutput:
        """Execute ``command`` and return its exit code and output."""


class StorageAdapter(Collaborator):
    """Reads and writes project files."""

    @abstractmethod
    def get_file_content(
        self,
        credential: Credential,
        project_id: str,
        path: str,
    ) -> str | None:
        """Return the file's content, or None when it does not exist."""

    @abstractmethod
    def apply_file_action(
        self,
        credential: Credential,
        project_id: str,
        action: FileAction,
        path: str,
        content: str | None = None,
    ) -> None:
        """Create, update or delete one file. Raises on failure."""


class LedgerAdapter(Collaborator):
    """Credits reward events exactly once per idempotency key."""

    @abstractmethod
    def award(
        self,
        credential: Credential,
        project_id: str | None,
        event_type: str,
        idempotency_key: str,
    ) -> RewardAward:
        """Credit ``event_type`` under ``idempotency_key``.

        Replaying a used key must return the recorded amount and balance
        with ``idempotent=True`` and credit nothing.
        """


class ActivityAdapter(Collaborator):
    """Appends events to a project's bounded activity history."""

    @abstractmethod
    def append_activity(
        self,
        credential: Credential,
        project_id: str,
        event: ActivityEvent,
    ) -> None:
        """Append one event; the adapter enforces the history bound."""


@dataclass
class Collaborators:
    """The full set of adapters one pipeline instance is wired with."""

    generation: GenerationAdapter
    sandbox: SandboxAdapter
    storage: StorageAdapter
    ledger: LedgerAdapter
    activity: ActivityAdapter

    def status(self) -> dict[str, dict]:
        """Availability of every wired adapter."""
        result = {}
        for role in ("generation", "sandbox", "storage", "ledger", "activity"):
            adapter: Collaborator = getattr(self, role)
            try:
                available = adapter.is_available()
            except Exception:
                available = False
            result[role] = {
                "name": adapter.name,
                "available": available,
                "type": adapter.__class__.__name__,
            }
        return result
