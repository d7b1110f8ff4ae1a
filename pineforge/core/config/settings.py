"""
Pipeline settings — reads pineforge.yml into a validated model.

Settings come from three layers, later layers winning:

    built-in defaults  <  pineforge.yml  <  PINEFORGE_* env vars

The YAML file is optional. When no path is given the loader searches
upward from the working directory, the same way a project config is
found from any subdirectory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from pineforge.core.errors import PipelineError

logger = logging.getLogger(__name__)

SETTINGS_FILE = "pineforge.yml"

_ENV_OVERRIDES = {
    "PINEFORGE_STATE_DIR": "state_dir",
    "PINEFORGE_WORKSPACE_DIR": "workspace_dir",
}


class ConfigError(PipelineError):
    """Raised when pineforge.yml is unreadable or invalid."""

    code = "CONFIG_ERROR"


class PathAlias(BaseModel):
    """One directory-convention alias: ``src/app/x`` may live at ``app/x``."""

    from_prefix: str
    to_prefix: str


class CommandPolicy(BaseModel):
    """Which directive commands the workspace sandbox is willing to run."""

    allow: list[str] = Field(default_factory=lambda: [
        r"^(pnpm|npm)\s+(add|install|run)\s+[\w\s@./-]+$",
        r"^pnpm\s+(dlx|exec)\s+[\w@./\s-]+$",
        r"^(pnpm|npm)\s+(list|why|outdated)(\s+[\w@./\s-]*)?$",
        r"^npx\s+[\w@./\s-]+$",
    ])
    forbid: str = r"[;&|`$<>]|\.\."


class PipelineSettings(BaseModel):
    """Tunables for every pipeline stage."""

    # Directive extraction
    directive_prefix: str = "RUN_COMMAND:"
    max_directives: int = 64
    max_text_chars: int = 1_000_000

    # Command execution
    output_tail_chars: int = 500
    command_timeout_s: float = 300.0
    command_policy: CommandPolicy = Field(default_factory=CommandPolicy)

    # File plan
    generation_timeout_s: float = 120.0
    storage_timeout_s: float = 30.0
    path_aliases: list[PathAlias] = Field(default_factory=lambda: [
        PathAlias(from_prefix="src/app/", to_prefix="app/"),
    ])

    # Rewards + activity
    tag_rewards: dict[str, str] = Field(default_factory=lambda: {
        "feature": "feature_shipped",
        "customer": "customer_added",
        "revenue": "revenue_logged",
    })
    activity_capacity: int = 50
    description_limit: int = 120

    # Local collaborator storage
    state_dir: str = ".pineforge"
    workspace_dir: str = ".pineforge/workspaces"

    @property
    def state_path(self) -> Path:
        return Path(self.state_dir)

    @property
    def workspace_path(self) -> Path:
        return Path(self.workspace_dir)


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for pineforge.yml starting from ``start_dir``, walking up."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_settings(path: Path | None = None, *, search: bool = True) -> PipelineSettings:
    """Load pipeline settings.

    Args:
        path: Explicit settings file. If None and ``search`` is set,
            searches upward from the cwd; a missing file means defaults.
        search: Whether to look for pineforge.yml when no path is given.

    Returns:
        Validated PipelineSettings.

    Raises:
        ConfigError: If an explicit path is missing, or any file is invalid.
    """
    data: dict = {}

    if path is None and search:
        path = find_settings_file()
    elif path is not None and not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")

    if path is not None:
        logger.debug("Loading settings from %s", path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(
                f"Expected a YAML mapping in {path}, got {type(loaded).__name__}"
            )
        # Allow everything to be nested under a "pipeline" key
        data = loaded.get("pipeline", loaded)

    for env_key, field_name in _ENV_OVERRIDES.items():
        value = os.environ.get(env_key)
        if value:
            data[field_name] = value

    try:
        settings = PipelineSettings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid pipeline settings: {e}") from e

    logger.info(
        "Settings loaded (%s, %d path aliases)",
        path or "defaults", len(settings.path_aliases),
    )
    return settings
