"""
Activity logging — record a "prompt" event after the response is built.

Fire-and-forget: the append runs on a daemon thread and the caller
never waits for it.  There is no delivery guarantee; every failure is
logged at debug level and discarded.
"""

from __future__ import annotations

import logging
import threading

from pineforge.adapters.base import ActivityAdapter
from pineforge.core.models.response import Credential
from pineforge.core.models.rewards import ActivityEvent

logger = logging.getLogger(__name__)

DESCRIPTION_LIMIT = 120
ELLIPSIS = "…"


def truncate_description(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    """First ``limit`` characters, with an ellipsis if anything was cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


def build_prompt_event(
    prompt: str,
    tag: str | None,
    earned: int,
    limit: int = DESCRIPTION_LIMIT,
) -> ActivityEvent:
    metadata: dict = {"pineapplesEarned": earned}
    if tag:
        metadata["tag"] = tag
    return ActivityEvent(
        type="prompt",
        description=truncate_description(prompt, limit),
        metadata=metadata,
    )


class ActivityLogger:
    """Appends prompt events to a project's history in the background."""

    def __init__(self, activity: ActivityAdapter, description_limit: int = DESCRIPTION_LIMIT) -> None:
        self._activity = activity
        self._limit = description_limit

    def log_prompt(
        self,
        project_id: str,
        credential: Credential,
        prompt: str,
        tag: str | None = None,
        earned: int = 0,
    ) -> threading.Thread:
        """Start the append and return immediately.

        The returned thread is only for callers (tests) that want to
        join it; the pipeline never does.
        """
        event = build_prompt_event(prompt, tag, earned, self._limit)
        t = threading.Thread(
            target=self._append,
            args=(project_id, credential, event),
            name="pineforge-activity",
            daemon=True,
        )
        t.start()
        return t

    def _append(self, project_id: str, credential: Credential, event: ActivityEvent) -> None:
        try:
            self._activity.append_activity(credential, project_id, event)
        except Exception as e:
            logger.debug("Activity append for %s failed: %s", project_id, e)
