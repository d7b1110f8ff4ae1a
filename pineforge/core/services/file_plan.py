"""
File plan application — apply a reply's create/update/delete plan.

Items are processed strictly in plan order, one at a time, so the
applied-files report is deterministic and two writes never race on the
same sandbox filesystem.  Each item ends in exactly one tagged outcome:

    applied  — reached storage
    skipped  — regenerated content was blank; nothing written
    failed   — any collaborator error or timeout; siblings unaffected

There is no transaction: a partially applied plan is an accepted result.

Updates whose path is missing are retried under each configured path
alias in turn (``src/app/page.tsx`` → ``app/page.tsx``); the first alias
that exists becomes the item's path for every later step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pineforge.adapters.base import GenerationAdapter, StorageAdapter
from pineforge.core.config.settings import PathAlias
from pineforge.core.models.files import FileOutcome, FilePlanItem
from pineforge.core.models.response import Credential, GenerationResponse
from pineforge.core.reliability.deadline import call_with_timeout
from pineforge.core.services.broadcast import BroadcastHub
from pineforge.core.services.directives import strip_code_fences

logger = logging.getLogger(__name__)

_FILE_EVENTS = {
    "create": "file:created",
    "update": "file:updated",
    "delete": "file:deleted",
}


class PathResolver:
    """Ordered list of path-alias transforms tried after a miss."""

    def __init__(self, aliases: list[PathAlias] | None = None) -> None:
        self._aliases = list(aliases or [])

    @property
    def aliases(self) -> list[PathAlias]:
        return list(self._aliases)

    def candidates(self, path: str) -> list[str]:
        """Alternative paths for ``path``, in configured order, no repeats."""
        seen = {path}
        out: list[str] = []
        for alias in self._aliases:
            if not path.startswith(alias.from_prefix):
                continue
            candidate = alias.to_prefix + path[len(alias.from_prefix):]
            if candidate not in seen:
                seen.add(candidate)
                out.append(candidate)
        return out


@dataclass
class _Resolved:
    path: str
    content: str | None


class FilePlanApplier:
    """Applies a response's file plan through storage and generation.

    Args:
        storage: File store the plan is applied to.
        generation: Regenerates full file content per item.
        resolver: Path-alias fallback for updates.
        hub: Optional hub notified of each applied file.
        generation_timeout: Bound on each content generation call.
        storage_timeout: Bound on each storage call.
    """

    def __init__(
        self,
        storage: StorageAdapter,
        generation: GenerationAdapter,
        *,
        resolver: PathResolver | None = None,
        hub: BroadcastHub | None = None,
        generation_timeout: float | None = 120.0,
        storage_timeout: float | None = 30.0,
    ) -> None:
        self._storage = storage
        self._generation = generation
        self._resolver = resolver or PathResolver()
        self._hub = hub
        self._generation_timeout = generation_timeout
        self._storage_timeout = storage_timeout

    def apply(
        self,
        response: GenerationResponse,
        project_id: str | None,
        credential: Credential | None,
        *,
        model: str | None = None,
    ) -> list[FileOutcome] | None:
        """Apply the plan and attach ``applied_files`` to the response.

        Skipped (returns None, plan left unapplied) without a project id
        and a credential, or when the plan is empty.
        """
        if not response.file_plan or not project_id or credential is None:
            return None

        outcomes = [
            self.apply_item(item, project_id, credential, model=model)
            for item in response.file_plan
        ]

        applied = [o.to_record() for o in outcomes if o.applied]
        response.applied_files = applied

        failed = sum(1 for o in outcomes if o.status == "failed")
        logger.info(
            "File plan for %s: %d applied, %d skipped, %d failed",
            project_id, len(applied), len(outcomes) - len(applied) - failed, failed,
        )

        if applied and "```" in response.message:
            stripped = strip_code_fences(response.message)
            if stripped:
                response.message = stripped
        return outcomes

    def apply_item(
        self,
        item: FilePlanItem,
        project_id: str,
        credential: Credential,
        *,
        model: str | None = None,
    ) -> FileOutcome:
        """Apply one plan item; never raises."""
        resolved_path = item.path
        try:
            if item.action == "delete":
                self._store(credential, project_id, "delete", item.path)
                return self._applied(item, item.path, project_id)

            current: str | None = None
            if item.action == "update":
                found = self._resolve(credential, project_id, item.path)
                resolved_path, current = found.path, found.content

            content = call_with_timeout(
                self._generation.generate_file_content,
                self._generation_timeout,
                resolved_path,
                item.action,
                item.description,
                current,
                model,
            )
            if not content or not content.strip():
                logger.warning("Empty content generated for %s; not applying", resolved_path)
                return FileOutcome(item=item, resolved_path=resolved_path, status="skipped")

            self._store(credential, project_id, item.action, resolved_path, content)
            return self._applied(item, resolved_path, project_id)

        except Exception as e:
            logger.error("File plan item failed: %s %s: %s", item.action, item.path, e)
            return FileOutcome(
                item=item,
                resolved_path=resolved_path,
                status="failed",
                error=str(e),
            )

    # ── Internal helpers ────────────────────────────────────────

    def _resolve(self, credential: Credential, project_id: str, path: str) -> _Resolved:
        content = self._fetch(credential, project_id, path)
        if content is not None:
            return _Resolved(path, content)

        for candidate in self._resolver.candidates(path):
            alt = self._fetch(credential, project_id, candidate)
            if alt is not None:
                logger.debug("Resolved %s → %s", path, candidate)
                return _Resolved(candidate, alt)

        return _Resolved(path, None)

    def _fetch(self, credential: Credential, project_id: str, path: str) -> str | None:
        return call_with_timeout(
            self._storage.get_file_content,
            self._storage_timeout,
            credential,
            project_id,
            path,
        )

    def _store(
        self,
        credential: Credential,
        project_id: str,
        action: str,
        path: str,
        content: str | None = None,
    ) -> None:
        call_with_timeout(
            self._storage.apply_file_action,
            self._storage_timeout,
            credential,
            project_id,
            action,
            path,
            content,
        )

    def _applied(self, item: FilePlanItem, path: str, project_id: str) -> FileOutcome:
        if self._hub is not None:
            self._hub.broadcast(
                _FILE_EVENTS[item.action],
                {"projectId": project_id, "path": path, "action": item.action},
            )
        return FileOutcome(item=item, resolved_path=path, status="applied")
