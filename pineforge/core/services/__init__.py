"""
Pipeline stages.

Public API::

    from pineforge.core.services import extract_directives, BroadcastHub

    extraction = extract_directives(reply)
    hub = BroadcastHub()
    hub.broadcast("file:created", {"path": "app/page.tsx"})
"""

from pineforge.core.services.activity import ActivityLogger, truncate_description
from pineforge.core.services.broadcast import BroadcastHub, QueueSink, format_frame
from pineforge.core.services.commands import CommandCoordinator, summarize_results
from pineforge.core.services.directives import (
    DirectiveExtraction,
    collapse_blank_lines,
    extract_directives,
    strip_code_fences,
)
from pineforge.core.services.file_plan import FilePlanApplier, PathResolver
from pineforge.core.services.rewards import RewardClient, derive_tag_key, reward_engaged

__all__ = [
    "ActivityLogger",
    "BroadcastHub",
    "CommandCoordinator",
    "DirectiveExtraction",
    "FilePlanApplier",
    "PathResolver",
    "QueueSink",
    "RewardClient",
    "collapse_blank_lines",
    "derive_tag_key",
    "extract_directives",
    "format_frame",
    "reward_engaged",
    "strip_code_fences",
    "summarize_results",
    "truncate_description",
]
