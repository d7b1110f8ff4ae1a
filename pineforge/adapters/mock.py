"""
Mock collaborators — in-memory test doubles for sandbox, storage and generation.

Each mock records every call it receives and can be told to fail for
specific inputs, so tests can exercise partial-failure paths without a
real sandbox or model provider.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pineforge.adapters.base import GenerationAdapter, SandboxAdapter, StorageAdapter
from pineforge.core.errors import CollaboratorError
from pineforge.core.models.commands import CommandOutput
from pineforge.core.models.files import FileAction, FilePlanItem
from pineforge.core.models.response import (
    Credential,
    GenerationRequest,
    GenerationResponse,
    new_thread_id,
)


@dataclass
class Call:
    """One recorded adapter call."""

    method: str
    args: dict[str, Any] = field(default_factory=dict)


class _Recorder:
    def __init__(self) -> None:
        self._call_log: list[Call] = []

    @property
    def call_log(self) -> list[Call]:
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def calls(self, method: str) -> list[Call]:
        return [c for c in self._call_log if c.method == method]

    def _record(self, method: str, **args: Any) -> None:
        self._call_log.append(Call(method=method, args=args))


class MockSandbox(SandboxAdapter, _Recorder):
    """Sandbox that 'runs' commands by looking up configured outputs.

    Unknown commands succeed with ``default_output`` on stdout.
    """

    def __init__(self, default_output: str = "[mock] ok") -> None:
        _Recorder.__init__(self)
        self._default_output = default_output
        self._outputs: dict[str, CommandOutput] = {}
        self._errors: dict[str, Exception] = {}

    @property
    def name(self) -> str:
        return "mock-sandbox"

    @property
    def commands_run(self) -> list[str]:
        return [c.args["command"] for c in self.calls("run_command")]

    def set_output(self, command: str, exit_code: int = 0, stdout: str = "", stderr: str = "") -> None:
        self._outputs[command] = CommandOutput(exit_code=exit_code, stdout=stdout, stderr=stderr)

    def set_error(self, command: str, error: Exception | None = None) -> None:
        """Make ``command`` raise instead of returning."""
        self._errors[command] = error or CollaboratorError(f"sandbox failed: {command}")

    def run_command(self, credential: Credential, project_id: str, command: str) -> CommandOutput:
        self._record("run_command", project_id=project_id, command=command)
        if command in self._errors:
            raise self._errors[command]
        return self._outputs.get(command) or CommandOutput(stdout=self._default_output)


class MockStorage(StorageAdapter, _Recorder):
    """Dict-backed file store keyed by (project_id, path)."""

    def __init__(self, files: dict[tuple[str, str], str] | None = None) -> None:
        _Recorder.__init__(self)
        self.files: dict[tuple[str, str], str] = dict(files or {})
        self._failing_paths: set[str] = set()

    @property
    def name(self) -> str:
        return "mock-storage"

    def fail_on(self, path: str) -> None:
        """Make every action against ``path`` raise."""
        self._failing_paths.add(path)

    def get_file_content(self, credential: Credential, project_id: str, path: str) -> str | None:
        self._record("get_file_content", project_id=project_id, path=path)
        return self.files.get((project_id, path))

    def apply_file_action(
        self,
        credential: Credential,
        project_id: str,
        action: FileAction,
        path: str,
        content: str | None = None,
    ) -> None:
        self._record("apply_file_action", project_id=project_id, action=action, path=path, content=content)
        if path in self._failing_paths:
            raise CollaboratorError(f"storage failed: {path}")
        if action == "delete":
            self.files.pop((project_id, path), None)
        else:
            self.files[(project_id, path)] = content or ""


class MockGeneration(GenerationAdapter, _Recorder):
    """Generation double with a fixed reply and per-path file contents."""

    def __init__(
        self,
        message: str = "",
        file_plan: list[FilePlanItem] | None = None,
        contents: dict[str, str] | None = None,
    ) -> None:
        _Recorder.__init__(self)
        self.message = message
        self.file_plan = list(file_plan or [])
        self.contents: dict[str, str] = dict(contents or {})
        self._failing_paths: set[str] = set()

    @property
    def name(self) -> str:
        return "mock-generation"

    def fail_on(self, path: str) -> None:
        self._failing_paths.add(path)

    def generate(self, request: GenerationRequest) -> GenerationResponse:
        self._record("generate", prompt=request.prompt, model=request.model)
        return GenerationResponse(
            message=self.message,
            file_plan=list(self.file_plan),
            thread_id=request.thread_id or new_thread_id(),
        )

    def generate_file_content(
        self,
        path: str,
        action: FileAction,
        description: str,
        current_content: str | None = None,
        model: str | None = None,
    ) -> str:
        self._record(
            "generate_file_content",
            path=path,
            action=action,
            description=description,
            current_content=current_content,
        )
        if path in self._failing_paths:
            raise CollaboratorError(f"generation failed: {path}")
        return self.contents.get(path, f"// generated {path}\n")
