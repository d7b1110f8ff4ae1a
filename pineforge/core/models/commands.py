"""
Command models — directives extracted from text and their results.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

# Captured stdout/stderr are bounded to their last N characters
OUTPUT_TAIL_CHARS = 500


def tail(text: str | None, limit: int = OUTPUT_TAIL_CHARS) -> str | None:
    """Keep only the last ``limit`` characters of ``text``."""
    if text is None:
        return None
    return text[-limit:] if limit > 0 else ""


class CommandDirective(BaseModel):
    """A trimmed command string and the order it appeared in."""

    model_config = ConfigDict(frozen=True)

    command: str
    order: int = 0


class CommandOutput(BaseModel):
    """What the sandbox returns for one executed command."""

    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""


class CommandResult(BaseModel):
    """Outcome of one directive, always present even on internal failure."""

    command: str
    exit_code: int
    stdout: str | None = None
    stderr: str | None = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @classmethod
    def from_output(
        cls,
        command: str,
        output: CommandOutput,
        tail_chars: int = OUTPUT_TAIL_CHARS,
    ) -> CommandResult:
        return cls(
            command=command,
            exit_code=output.exit_code,
            stdout=tail(output.stdout, tail_chars),
            stderr=tail(output.stderr, tail_chars),
        )

    @classmethod
    def synthetic_failure(cls, command: str) -> CommandResult:
        """Result recorded when the sandbox call itself raised or timed out."""
        return cls(command=command, exit_code=1)

    def summary_line(self) -> str:
        if self.ok:
            return f"Ran: {self.command}"
        return f"Failed ({self.exit_code}): {self.command}"

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"command": self.command, "exitCode": self.exit_code}
        if self.stdout is not None:
            payload["stdout"] = self.stdout
        if self.stderr is not None:
            payload["stderr"] = self.stderr
        return payload
