"""
Directive extraction — find ``RUN_COMMAND:`` lines in generated text.

Pure text processing: no I/O, no state.  A directive is a line whose
first non-whitespace characters are the prefix (any letter case); the
rest of the line, trimmed, is the command.

Input is bounded: oversized text is left alone and at most
``max_directives`` commands are returned.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from functools import lru_cache

from pineforge.core.models.commands import CommandDirective

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "RUN_COMMAND:"
DEFAULT_MAX_DIRECTIVES = 64
DEFAULT_MAX_CHARS = 1_000_000

_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")
_CODE_FENCE_RE = re.compile(r"```[\s\S]*?```")


@dataclass
class DirectiveExtraction:
    """Commands found in a text and the text with their lines removed."""

    directives: list[CommandDirective] = field(default_factory=list)
    cleaned_text: str = ""
    dropped: int = 0                # matches beyond the directive cap

    @property
    def commands(self) -> list[str]:
        return [d.command for d in self.directives]

    def __bool__(self) -> bool:
        return bool(self.directives)


@lru_cache(maxsize=8)
def _directive_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"^[ \t]*{re.escape(prefix)}(.*)$", re.IGNORECASE)


def collapse_blank_lines(text: str) -> str:
    """Collapse every run of 3+ newlines to exactly two."""
    return _EXCESS_NEWLINES_RE.sub("\n\n", text)


def strip_code_fences(text: str) -> str:
    """Remove fenced code blocks, then tidy the blank lines left behind."""
    return collapse_blank_lines(_CODE_FENCE_RE.sub("", text)).strip()


def extract_directives(
    text: str,
    *,
    prefix: str = DEFAULT_PREFIX,
    max_directives: int = DEFAULT_MAX_DIRECTIVES,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> DirectiveExtraction:
    """Split generated text into directive commands and residual message.

    Args:
        text: Raw generated reply.
        prefix: Directive marker, matched case-insensitively at line start.
        max_directives: Cap on returned commands; extra directive lines
            are still removed from the text.
        max_chars: Texts longer than this are not scanned.

    Returns:
        DirectiveExtraction with commands in source order and the residual
        text tidied (blank runs collapsed, trimmed), matches or not.
    """
    if not text:
        return DirectiveExtraction(cleaned_text=text or "")

    if len(text) > max_chars:
        logger.warning(
            "Reply too long to scan for directives (%d > %d chars)", len(text), max_chars,
        )
        return DirectiveExtraction(cleaned_text=text)

    pattern = _directive_pattern(prefix)
    kept: list[str] = []
    directives: list[CommandDirective] = []
    matched = 0
    dropped = 0

    for line in text.split("\n"):
        m = pattern.match(line)
        if m is None:
            kept.append(line)
            continue

        matched += 1
        command = m.group(1).strip()
        if not command:
            continue
        if len(directives) >= max_directives:
            dropped += 1
            continue
        directives.append(CommandDirective(command=command, order=len(directives)))

    if matched == 0:
        return DirectiveExtraction(cleaned_text=collapse_blank_lines(text).strip())

    if dropped:
        logger.warning("Dropped %d directives beyond the cap of %d", dropped, max_directives)

    cleaned = collapse_blank_lines("\n".join(kept)).strip()
    return DirectiveExtraction(directives=directives, cleaned_text=cleaned, dropped=dropped)
