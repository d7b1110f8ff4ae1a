"""
Activity store — bounded per-project activity history.

Each project keeps at most ``capacity`` events (50 by default), oldest
first; appending to a full history evicts the oldest entry.  Histories
are stored as ``<state_dir>/activity/<project_id>.json`` with atomic
writes, or kept in memory when no directory is given.
"""

from __future__ import annotations

import json
import logging
import tempfile
import threading
from collections import deque
from pathlib import Path

from pineforge.adapters.base import ActivityAdapter
from pineforge.core.models.response import Credential
from pineforge.core.models.rewards import ActivityEvent

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50
ACTIVITY_SUBDIR = "activity"


class ActivityStore(ActivityAdapter):
    """Bounded, append-only activity history per project."""

    def __init__(self, state_dir: Path | None = None, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._dir = state_dir / ACTIVITY_SUBDIR if state_dir is not None else None
        self._capacity = capacity
        self._lock = threading.Lock()
        self._histories: dict[str, deque[ActivityEvent]] = {}

    @property
    def name(self) -> str:
        return "activity"

    @property
    def capacity(self) -> int:
        return self._capacity

    def append_activity(
        self,
        credential: Credential,
        project_id: str,
        event: ActivityEvent,
    ) -> None:
        with self._lock:
            history = self._history(project_id)
            history.append(event)
            self._save(project_id, history)
        logger.debug("Activity %s appended to %s (%d kept)", event.type, project_id, len(history))

    def history(self, project_id: str) -> list[ActivityEvent]:
        """Events for a project, oldest first."""
        with self._lock:
            return list(self._history(project_id))

    def _history(self, project_id: str) -> deque[ActivityEvent]:
        history = self._histories.get(project_id)
        if history is None:
            history = deque(self._load(project_id), maxlen=self._capacity)
            self._histories[project_id] = history
        return history

    def _file(self, project_id: str) -> Path | None:
        if self._dir is None:
            return None
        safe = "".join(c if c.isalnum() or c in "-_." else "_" for c in project_id)
        return self._dir / f"{safe}.json"

    def _load(self, project_id: str) -> list[ActivityEvent]:
        path = self._file(project_id)
        if path is None or not path.is_file():
            return []
        try:
            rows = json.loads(path.read_text(encoding="utf-8"))
            return [ActivityEvent.model_validate(r) for r in rows]
        except (json.JSONDecodeError, OSError, ValueError) as e:
            logger.warning("Corrupt activity history %s: %s — starting fresh", path, e)
            return []

    def _save(self, project_id: str, history: deque[ActivityEvent]) -> None:
        path = self._file(project_id)
        if path is None:
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        rows = [e.model_dump(mode="json", by_alias=True) for e in history]
        content = json.dumps(rows, indent=2, ensure_ascii=False) + "\n"

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".activity_", suffix=".tmp")
        tmp = Path(tmp_name)
        try:
            with open(fd, "w", encoding="utf-8") as f:
                f.write(content)
            tmp.replace(path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
