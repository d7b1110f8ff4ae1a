"""
Response pipeline — the central orchestration for one generation request.

Flow:
    validate → generate → run directives → apply file plan
             → award rewards → (detached) log activity → return

Commands run before the file plan, matching the order the reply was
generated in.  Both stages are serialized internally.  Nothing here
locks across requests: two concurrent requests against the same project
may interleave their sandbox writes, and the sandbox/storage
collaborator is the only arbiter of that.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from pineforge.adapters.base import Collaborators
from pineforge.core.config.settings import PipelineSettings
from pineforge.core.errors import BadRequest
from pineforge.core.models.files import FileOutcome
from pineforge.core.models.commands import CommandResult
from pineforge.core.models.response import (
    Credential,
    GenerationRequest,
    GenerationResponse,
    new_thread_id,
)
from pineforge.core.models.rewards import RewardSummary
from pineforge.core.services.activity import ActivityLogger
from pineforge.core.services.broadcast import BroadcastHub
from pineforge.core.services.commands import CommandCoordinator
from pineforge.core.services.file_plan import FilePlanApplier, PathResolver
from pineforge.core.services.rewards import RewardClient

logger = logging.getLogger(__name__)


@dataclass
class PipelineReport:
    """Everything one run of the pipeline did, for callers that want detail."""

    response: GenerationResponse
    command_results: list[CommandResult] | None = None
    file_outcomes: list[FileOutcome] | None = None
    rewards: RewardSummary | None = None
    activity_scheduled: bool = False
    duration_ms: int = 0
    stages: list[str] = field(default_factory=list)


def validate_request(request: GenerationRequest) -> None:
    """Reject unusable requests before any side effect.

    Raises:
        BadRequest: Blank prompt.
    """
    if not request.prompt or not request.prompt.strip():
        raise BadRequest("Prompt is required")


class ResponsePipeline:
    """Turns one generation request into side effects and a response.

    Args:
        collaborators: Generation, sandbox, storage, ledger and activity adapters.
        settings: Stage tunables.
        hub: Broadcast hub for live viewers (optional).
    """

    def __init__(
        self,
        collaborators: Collaborators,
        settings: PipelineSettings | None = None,
        hub: BroadcastHub | None = None,
    ) -> None:
        self._collab = collaborators
        self._settings = settings or PipelineSettings()
        self._hub = hub

        s = self._settings
        self.commands = CommandCoordinator(
            collaborators.sandbox,
            timeout=s.command_timeout_s,
            prefix=s.directive_prefix,
            max_directives=s.max_directives,
            max_chars=s.max_text_chars,
            tail_chars=s.output_tail_chars,
        )
        self.files = FilePlanApplier(
            collaborators.storage,
            collaborators.generation,
            resolver=PathResolver(s.path_aliases),
            hub=hub,
            generation_timeout=s.generation_timeout_s,
            storage_timeout=s.storage_timeout_s,
        )
        self.rewards = RewardClient(collaborators.ledger, s.tag_rewards)
        self.activity = ActivityLogger(collaborators.activity, s.description_limit)

    @property
    def settings(self) -> PipelineSettings:
        return self._settings

    @property
    def hub(self) -> BroadcastHub | None:
        return self._hub

    @property
    def collaborators(self) -> Collaborators:
        return self._collab

    def process(
        self,
        request: GenerationRequest,
        credential: Credential | None = None,
    ) -> GenerationResponse:
        """Run the full pipeline and return the response."""
        return self.run(request, credential).response

    def run(
        self,
        request: GenerationRequest,
        credential: Credential | None = None,
    ) -> PipelineReport:
        """Run the full pipeline and return a detailed report."""
        validate_request(request)
        start = time.monotonic()

        project_id = request.effective_project_id
        thread_id = request.thread_id or new_thread_id()
        if request.thread_id is None:
            request = request.model_copy(update={"thread_id": thread_id})

        logger.info(
            "Generation request: prompt=%d chars thread=%s project=%s",
            len(request.prompt), thread_id, project_id or "none",
        )

        response = self._collab.generation.generate(request)
        if not response.thread_id:
            response.thread_id = thread_id
        report = PipelineReport(response=response, stages=["generate"])

        # Commands, then files: each stage skips itself without project + credential
        report.command_results = self.commands.run(response, project_id, credential)
        if report.command_results is not None:
            report.stages.append("commands")

        report.file_outcomes = self.files.apply(
            response, project_id, credential, model=request.model,
        )
        if report.file_outcomes is not None:
            report.stages.append("files")

        report.rewards = self.rewards.award_for_response(request, credential)
        if report.rewards is not None:
            report.stages.append("rewards")
            response.pineapples_earned = report.rewards.total_credited
            response.new_balance = report.rewards.latest_balance

            # Detached: the response does not wait for, or learn about, this
            if credential is not None and project_id is not None:
                self.activity.log_prompt(
                    project_id,
                    credential,
                    request.prompt,
                    request.tag,
                    report.rewards.total_credited,
                )
                report.activity_scheduled = True

        report.duration_ms = int((time.monotonic() - start) * 1000)
        logger.info("Pipeline done in %dms (stages: %s)", report.duration_ms, ", ".join(report.stages))
        return report


def build_local_pipeline(
    settings: PipelineSettings,
    generation,
    hub: BroadcastHub | None = None,
) -> ResponsePipeline:
    """Wire a pipeline against the local workspace, ledger and activity store.

    Args:
        settings: Loaded settings (state and workspace directories come from here).
        generation: The GenerationAdapter to use.
        hub: Optional broadcast hub.
    """
    from pineforge.adapters.workspace import WorkspaceAdapter
    from pineforge.core.persistence.activity_store import ActivityStore
    from pineforge.core.persistence.reward_ledger import DEFAULT_LEDGER_FILE, RewardLedger

    state_dir = settings.state_path
    workspace = WorkspaceAdapter(
        settings.workspace_path,
        policy=settings.command_policy,
        command_timeout=settings.command_timeout_s,
    )
    collaborators = Collaborators(
        generation=generation,
        sandbox=workspace,
        storage=workspace,
        ledger=RewardLedger(state_dir / DEFAULT_LEDGER_FILE),
        activity=ActivityStore(state_dir, capacity=settings.activity_capacity),
    )
    return ResponsePipeline(collaborators, settings, hub)
