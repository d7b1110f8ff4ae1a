"""
Command execution — run a reply's directives against the project sandbox.

Directives run strictly in source order, one at a time.  Each gets a
result entry no matter what: a raised or timed-out sandbox call becomes
a synthetic ``exit_code=1`` result and the next directive still runs.
"""

from __future__ import annotations

import logging

from pineforge.adapters.base import SandboxAdapter
from pineforge.core.models.commands import OUTPUT_TAIL_CHARS, CommandResult
from pineforge.core.models.response import Credential, GenerationResponse
from pineforge.core.reliability.deadline import call_with_timeout
from pineforge.core.services.directives import (
    DEFAULT_MAX_CHARS,
    DEFAULT_MAX_DIRECTIVES,
    DEFAULT_PREFIX,
    extract_directives,
)

logger = logging.getLogger(__name__)


def summarize_results(results: list[CommandResult]) -> str:
    """One ``Ran:`` / ``Failed (<code>):`` line per command."""
    return "\n".join(r.summary_line() for r in results)


class CommandCoordinator:
    """Extracts directives from a response and executes them in order.

    Args:
        sandbox: Where commands run.
        timeout: Upper bound per command, in seconds (None = unbounded).
        prefix: Directive marker.
        max_directives: Cap on commands per reply.
        max_chars: Replies longer than this are not scanned.
        tail_chars: How much of stdout/stderr to keep.
    """

    def __init__(
        self,
        sandbox: SandboxAdapter,
        *,
        timeout: float | None = 300.0,
        prefix: str = DEFAULT_PREFIX,
        max_directives: int = DEFAULT_MAX_DIRECTIVES,
        max_chars: int = DEFAULT_MAX_CHARS,
        tail_chars: int = OUTPUT_TAIL_CHARS,
    ) -> None:
        self._sandbox = sandbox
        self._timeout = timeout
        self._prefix = prefix
        self._max_directives = max_directives
        self._max_chars = max_chars
        self._tail_chars = tail_chars

    def run(
        self,
        response: GenerationResponse,
        project_id: str | None,
        credential: Credential | None,
    ) -> list[CommandResult] | None:
        """Run the response's directives and attach the results.

        Skipped entirely (returns None, message untouched) without a
        project id and a credential, or when the reply has no directives.
        """
        if not project_id or credential is None:
            return None

        extraction = extract_directives(
            response.message,
            prefix=self._prefix,
            max_directives=self._max_directives,
            max_chars=self._max_chars,
        )
        if not extraction:
            return None

        results = self.execute(extraction.commands, project_id, credential)

        response.run_command_results = results
        response.message = extraction.cleaned_text
        if not response.message.strip():
            response.message = summarize_results(results)
        return results

    def execute(
        self,
        commands: list[str],
        project_id: str,
        credential: Credential,
    ) -> list[CommandResult]:
        """Execute commands in order; one result per command, always."""
        results: list[CommandResult] = []
        for command in commands:
            logger.info("RUN_COMMAND %s (project=%s)", command, project_id)
            try:
                output = call_with_timeout(
                    self._sandbox.run_command,
                    self._timeout,
                    credential,
                    project_id,
                    command,
                )
            except Exception as e:
                logger.error("RUN_COMMAND failed: %s: %s", command, e)
                results.append(CommandResult.synthetic_failure(command))
                continue

            result = CommandResult.from_output(command, output, self._tail_chars)
            if not result.ok:
                logger.warning(
                    "RUN_COMMAND non-zero exit: %s → %d %s",
                    command, result.exit_code, (result.stderr or "")[-300:],
                )
            results.append(result)
        return results
