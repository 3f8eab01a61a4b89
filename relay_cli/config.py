"""Project configuration handling for relay"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from relay_cli.constants import (
    CONFIG_DIR,
    CONFIG_FILE,
    DEFAULT_BASE_BRANCH,
    DEFAULT_WORKTREE_BASE,
    EDITOR_CHOICES,
    FALLBACK_EDITOR,
)
from relay_cli.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RelayConfig:
    """Per-project configuration stored in ``.relay/relay-config.json``."""

    repo_base: str
    editor: str = FALLBACK_EDITOR
    worktree_base: str = DEFAULT_WORKTREE_BASE
    base_branch: str = DEFAULT_BASE_BRANCH
    default_team: Optional[str] = None
    startup_scripts: List[str] = field(default_factory=list)

    # Where the file was loaded from (not persisted)
    source: Optional[Path] = field(default=None, compare=False)

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_repo_base()
        self._validate_editor()
        self._validate_base_branch()
        self._validate_startup_scripts()

    def _validate_repo_base(self):
        if not self.repo_base or not str(self.repo_base).strip():
            raise ValueError("repoBase cannot be empty")
        self.repo_base = str(self.repo_base).strip()

    def _validate_editor(self):
        if self.editor not in EDITOR_CHOICES:
            raise ValueError(f"editor must be one of {EDITOR_CHOICES}, got '{self.editor}'")

    def _validate_base_branch(self):
        if not self.base_branch or not self.base_branch.strip():
            raise ValueError("baseBranch cannot be empty")
        self.base_branch = self.base_branch.strip()

    def _validate_startup_scripts(self):
        if not isinstance(self.startup_scripts, list) or not all(
            isinstance(script, str) for script in self.startup_scripts
        ):
            raise ValueError("startupScripts must be a list of commands")

    def applies_to(self, repo_path: str) -> bool:
        """Whether this configuration describes the repository at ``repo_path``."""
        target = os.path.realpath(repo_path)
        if os.path.realpath(self.repo_base) == target:
            return True
        if self.source is None:
            return False
        config_root = os.path.realpath(self.source.parent.parent)
        return config_root == target or config_root.startswith(target + os.sep)

    def to_dict(self) -> dict:
        """Convert config to the on-disk (camelCase) representation."""
        data = {
            "repoBase": self.repo_base,
            "editor": self.editor,
            "worktreeBase": self.worktree_base,
            "baseBranch": self.base_branch,
        }
        if self.default_team:
            data["defaultTeam"] = self.default_team
        if self.startup_scripts:
            data["startupScripts"] = list(self.startup_scripts)
        return data

    def get(self, key: str, default=None):
        """Get config value by attribute name."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict, source: Optional[Path] = None) -> "RelayConfig":
        """Create RelayConfig from the on-disk dictionary, ignoring unknown keys."""
        if "repoBase" not in config_dict:
            raise ValueError("repoBase is required")
        return cls(
            repo_base=config_dict["repoBase"],
            editor=config_dict.get("editor", FALLBACK_EDITOR),
            worktree_base=config_dict.get("worktreeBase", DEFAULT_WORKTREE_BASE),
            base_branch=config_dict.get("baseBranch", DEFAULT_BASE_BRANCH),
            default_team=config_dict.get("defaultTeam"),
            startup_scripts=config_dict.get("startupScripts") or [],
            source=source,
        )


def get_config_path(directory) -> Path:
    return Path(directory) / CONFIG_DIR / CONFIG_FILE


def load_config(directory) -> Optional[RelayConfig]:
    """Load the configuration stored directly under ``directory``.

    Returns None when the file is absent or unreadable.
    """
    config_path = get_config_path(directory)
    if not config_path.is_file():
        return None

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return RelayConfig.from_dict(data, source=config_path)
    except json.JSONDecodeError as e:
        logger.warning(f"Invalid JSON in config file {config_path}: {e}")
        return None
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid config file {config_path}: {e}")
        return None


def find_config(start=None) -> Optional[RelayConfig]:
    """Walk upward from ``start`` to the filesystem root looking for a config."""
    current = Path(start or os.getcwd()).resolve()
    for directory in [current, *current.parents]:
        config = load_config(directory)
        if config is not None:
            logger.debug(f"Using config {config.source}")
            return config
    logger.debug(f"No relay config found above {current}")
    return None


def save_config(config: RelayConfig, directory) -> Path:
    """Write ``config`` under ``directory``, creating the config dir."""
    config_path = get_config_path(directory)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    # Atomic write: write to temp file, then rename
    temp_file = config_path.with_suffix(".tmp")
    with open(temp_file, "w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2)
        f.write("\n")
    temp_file.replace(config_path)

    config.source = config_path
    logger.info(f"Saved config to {config_path}")
    return config_path
