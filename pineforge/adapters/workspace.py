"""
Workspace adapter — a local directory per project as sandbox and storage.

Each project gets ``<workspace_root>/<project_id>/``.  Commands run there
through the shell (subject to the command policy) and file actions read
and write beneath it.  This is the development stand-in for a remote
ephemeral sandbox; it provides no isolation beyond the path checks.
"""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
import threading
import time
from pathlib import Path

from pineforge.adapters.base import SandboxAdapter, StorageAdapter
from pineforge.core.config.settings import CommandPolicy
from pineforge.core.errors import BadRequest, CollaboratorError
from pineforge.core.models.commands import CommandOutput
from pineforge.core.models.files import FileAction
from pineforge.core.models.response import Credential

logger = logging.getLogger(__name__)

_PROJECT_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,127}$")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")


def sanitize_relative_path(path: str) -> str:
    """Normalize a project-relative path, dropping ``.``/``..`` segments.

    Raises:
        BadRequest: The path is empty, absolute or contains control chars.
    """
    if _CONTROL_CHARS_RE.search(path or ""):
        raise BadRequest(f"Invalid path: {path!r}")
    if path.startswith("/") or re.match(r"^[A-Za-z]:[\\/]", path):
        raise BadRequest(f"Absolute paths are not allowed: {path}")
    parts = [p for p in re.split(r"[/\\]", path) if p not in ("", ".", "..")]
    if not parts:
        raise BadRequest(f"Invalid path: {path!r}")
    return "/".join(parts)


class WorkspaceAdapter(SandboxAdapter, StorageAdapter):
    """Project directories on local disk, used as sandbox and file store.

    Args:
        root: Directory that holds one subdirectory per project.
        policy: Allow/forbid patterns applied to every command.
        command_timeout: Seconds before a command is killed.
    """

    def __init__(
        self,
        root: Path,
        policy: CommandPolicy | None = None,
        command_timeout: float = 300.0,
    ) -> None:
        self._root = root
        self._policy = policy or CommandPolicy()
        self._allow = [re.compile(p, re.IGNORECASE) for p in self._policy.allow]
        self._forbid = re.compile(self._policy.forbid) if self._policy.forbid else None
        self._command_timeout = command_timeout
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "workspace"

    @property
    def root(self) -> Path:
        return self._root

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def project_dir(self, project_id: str) -> Path:
        """Directory for a project (created on first use)."""
        if not _PROJECT_ID_RE.match(project_id or ""):
            raise BadRequest(f"Invalid project id: {project_id!r}")
        target = self._root / project_id
        with self._lock:
            target.mkdir(parents=True, exist_ok=True)
        return target

    # ── Sandbox ─────────────────────────────────────────────────

    def check_command(self, command: str) -> str:
        """Validate a command against the policy; returns it trimmed."""
        raw = command.strip()
        if not raw:
            raise BadRequest("Command is required")
        if self._forbid and self._forbid.search(raw):
            raise BadRequest("Command contains disallowed characters")
        if self._allow and not any(p.match(raw) for p in self._allow):
            raise BadRequest(f"Command not allowed by policy: {raw}")
        return raw

    def run_command(
        self,
        credential: Credential,
        project_id: str,
        command: str,
    ) -> CommandOutput:
        raw = self.check_command(command)
        cwd = self.project_dir(project_id)

        logger.debug("Executing: %s (cwd=%s)", raw, cwd)
        start = time.monotonic()
        try:
            result = subprocess.run(
                raw,
                shell=True,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self._command_timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise CollaboratorError(
                f"Command timed out after {self._command_timeout}s: {raw}"
            ) from e
        except OSError as e:
            raise CollaboratorError(f"Command execution error: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.debug("%s → exit %d (%dms)", raw, result.returncode, elapsed_ms)
        return CommandOutput(
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    # ── Storage ─────────────────────────────────────────────────

    def get_file_content(
        self,
        credential: Credential,
        project_id: str,
        path: str,
    ) -> str | None:
        target = self.project_dir(project_id) / sanitize_relative_path(path)
        if not target.is_file():
            return None
        try:
            return target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise CollaboratorError(f"Cannot read {path}: {e}") from e

    def apply_file_action(
        self,
        credential: Credential,
        project_id: str,
        action: FileAction,
        path: str,
        content: str | None = None,
    ) -> None:
        safe_path = sanitize_relative_path(path)
        target = self.project_dir(project_id) / safe_path

        if action == "delete":
            target.unlink(missing_ok=True)
            logger.debug("Deleted %s/%s", project_id, safe_path)
            return

        to_write = content or ""
        if action == "update" and not to_write.strip():
            raise BadRequest(
                "Update action requires non-empty content; refusing to overwrite "
                "file with empty content."
            )

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(to_write, encoding="utf-8")
        except OSError as e:
            raise CollaboratorError(f"Cannot write {safe_path}: {e}") from e
        logger.debug("Wrote %d chars to %s/%s", len(to_write), project_id, safe_path)
