"""
Scripted generation adapter — replays a canned reply from YAML.

Used by ``pineforge process`` and the dev server when no model provider
is wired.  A script looks like::

    message: |
      Adding a header.
      RUN_COMMAND: npm install clsx
    filePlan:
      - path: src/app/page.tsx
        action: update
        description: Add a header
    files:
      src/app/page.tsx: |
        export default function Page() { return <h1>Hi</h1>; }

``files`` maps a path to the content returned for it; paths missing
from the map generate empty content (which the file plan skips).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from pineforge.adapters.base import GenerationAdapter
from pineforge.core.config.settings import ConfigError
from pineforge.core.models.files import FileAction, FilePlanItem
from pineforge.core.models.response import (
    GenerationRequest,
    GenerationResponse,
    new_thread_id,
)

logger = logging.getLogger(__name__)


class ScriptedGeneration(GenerationAdapter):
    """Returns the same scripted reply for every prompt."""

    def __init__(
        self,
        message: str = "",
        file_plan: list[FilePlanItem] | None = None,
        files: dict[str, str] | None = None,
    ) -> None:
        self._message = message
        self._file_plan = list(file_plan or [])
        self._files = dict(files or {})

    @property
    def name(self) -> str:
        return "scripted"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScriptedGeneration:
        plan = data.get("filePlan", data.get("file_plan")) or []
        return cls(
            message=str(data.get("message", "")),
            file_plan=[FilePlanItem.model_validate(item) for item in plan],
            files={str(k): str(v) for k, v in (data.get("files") or {}).items()},
        )

    @classmethod
    def from_file(cls, path: Path) -> ScriptedGeneration:
        """Load a script from YAML (or JSON, which YAML also parses)."""
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"Cannot read script {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in script {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping in script {path}")
        try:
            return cls.from_dict(data)
        except Exception as e:
            raise ConfigError(f"Invalid script {path}: {e}") from e

    def generate(self, request: GenerationRequest) -> GenerationResponse:
        logger.debug("Scripted reply for prompt (%d chars)", len(request.prompt))
        return GenerationResponse(
            message=self._message,
            file_plan=list(self._file_plan),
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
        return self._files.get(path, "")
