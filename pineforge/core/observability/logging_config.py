"""
Logging configuration — one-time setup for the CLI and dev server.

Every pipeline module does ``logger = logging.getLogger(__name__)`` and
inherits what is configured here.  Level precedence:

    --debug / --verbose / --quiet  >  PINEFORGE_LOG_LEVEL  >  WARNING

``PINEFORGE_LOG_FILE`` adds a file handler (level from
``PINEFORGE_LOG_FILE_LEVEL``, defaulting to the console level).
"""

from __future__ import annotations

import logging
import os
import sys

# ── Formats per verbosity ───────────────────────────────────────

_CONSOLE_FORMATS: list[tuple[int, str, str | None]] = [
    # (max level, format, datefmt); first match wins
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
]
_FMT_QUIET = "%(message)s"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# Request logs from the dev server drown out pipeline logs at INFO
_NOISY_LOGGERS = ("werkzeug", "urllib3")


def level_from_flags(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
) -> str:
    """Resolve the console level name from CLI flags and the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get("PINEFORGE_LOG_LEVEL", "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name.
        log_file: Optional log file path.
        log_file_level: Level for the file handler (defaults to ``level``).
        quiet_third_party: Pin noisy library loggers to WARNING unless
            running at DEBUG.
    """
    console_level = parse_level(level)

    fmt, datefmt = _FMT_QUIET, None
    for max_level, candidate_fmt, candidate_datefmt in _CONSOLE_FORMATS:
        if console_level <= max_level:
            fmt, datefmt = candidate_fmt, candidate_datefmt
            break

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(root_level)

    if quiet_third_party and console_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def parse_level(level: str | None) -> int:
    """Level name → numeric level; unknown names fall back to WARNING."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING
