"""Per-invocation state shared by every relay command."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from rich.console import Console

from relay_cli.config import RelayConfig, find_config
from relay_cli.constants import DATA_DIR_NAME, DATABASE_FILE, DEFAULT_BASE_BRANCH
from relay_cli.exceptions import ConfigurationMissing
from relay_cli.models.repository import Repository
from relay_cli.services.catalog import Catalog, SettingsStore
from relay_cli.services.display_service import DisplayService
from relay_cli.services.editor import EditorLauncher, resolve_editor
from relay_cli.services.generator import IssueGenerator
from relay_cli.services.git.github import PullRequestService
from relay_cli.services.git.history import GitHistory
from relay_cli.services.git.worktrees import WorktreeManager
from relay_cli.services.tracker import LinearTracker
from relay_cli.ui.prompts import Prompter, TerminalPrompter
from relay_cli.utils.logging import get_logger

logger = get_logger(__name__)


def data_dir() -> Path:
    """Directory holding the catalog database and debug log.

    ``RELAY_HOME`` overrides the default ``~/.relay``.
    """
    override = os.environ.get("RELAY_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / DATA_DIR_NAME


def database_path() -> Path:
    return data_dir() / DATABASE_FILE


@dataclass
class RelayContext:
    """Everything a workflow needs, passed in explicitly.

    Adapters that need a key are built on demand through the factories so
    commands that never reach the network do not require credentials.
    """

    catalog: Catalog
    config: Optional[RelayConfig] = None
    console: Console = field(default_factory=Console)
    prompter: Prompter = field(default_factory=TerminalPrompter)
    worktrees: WorktreeManager = field(default_factory=WorktreeManager)
    editor: EditorLauncher = field(default_factory=EditorLauncher)
    tracker_factory: Callable[[str], LinearTracker] = LinearTracker
    generator_factory: Callable[[str], IssueGenerator] = IssueGenerator
    history_factory: Callable[[str], GitHistory] = GitHistory
    github_factory: Callable[[str, Optional[str]], PullRequestService] = PullRequestService
    cwd: str = field(default_factory=os.getcwd)
    assume_yes: bool = False

    @property
    def settings(self) -> SettingsStore:
        return self.catalog.settings

    @property
    def display(self) -> DisplayService:
        return DisplayService(self.console)

    def tracker(self) -> LinearTracker:
        key = self.settings.linear_key
        if not key:
            raise ConfigurationMissing("Linear API key not found")
        return self.tracker_factory(key)

    def generator(self) -> IssueGenerator:
        key = self.settings.openrouter_key
        if not key:
            raise ConfigurationMissing("OpenRouter API key not found")
        return self.generator_factory(key)

    def history(self, path: Optional[str] = None) -> GitHistory:
        return self.history_factory(path or self.cwd)

    def pull_requests(self, repo_path: str) -> PullRequestService:
        return self.github_factory(repo_path, self.settings.github_token)

    def config_for(self, repo: Repository) -> Optional[RelayConfig]:
        """The project config, if it describes ``repo``."""
        if self.config is not None and self.config.applies_to(repo.path):
            return self.config
        return None

    def base_branch_for(self, repo: Repository) -> str:
        config = self.config_for(repo)
        return config.base_branch if config else DEFAULT_BASE_BRANCH

    def startup_scripts_for(self, repo: Repository) -> List[str]:
        config = self.config_for(repo)
        return list(config.startup_scripts) if config else []

    def editor_for(self, repo: Optional[Repository]) -> str:
        return resolve_editor(repo, self.settings, self.config)

    def close(self) -> None:
        self.catalog.close()


def build_context(
    cwd: Optional[str] = None, console: Optional[Console] = None, assume_yes: bool = False
) -> RelayContext:
    """Open the catalog and discover the project config for a CLI invocation."""
    cwd = cwd or os.getcwd()
    console = console or Console()
    db_path = database_path()
    logger.debug(f"Catalog database: {db_path}")
    return RelayContext(
        catalog=Catalog(db_path),
        config=find_config(cwd),
        console=console,
        prompter=TerminalPrompter(console),
        cwd=cwd,
        assume_yes=assume_yes,
    )
