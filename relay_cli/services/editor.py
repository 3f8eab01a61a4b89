"""Editor launching for relay worktrees."""

import shutil
import subprocess
from typing import Optional, TYPE_CHECKING

from relay_cli.constants import EDITORS, FALLBACK_EDITOR
from relay_cli.exceptions import EditorLaunchError
from relay_cli.utils.logging import get_logger

if TYPE_CHECKING:
    from relay_cli.config import RelayConfig
    from relay_cli.models.repository import Repository
    from relay_cli.services.catalog.settings import SettingsStore

logger = get_logger(__name__)


def resolve_editor(
    repo: Optional["Repository"],
    settings: Optional["SettingsStore"] = None,
    config: Optional["RelayConfig"] = None,
) -> str:
    """Pick the editor for ``repo``.

    Order: project config (when it describes this repository), the
    repository's own editor, the ``default_editor`` setting, then cursor.
    """
    if config is not None and repo is not None and config.applies_to(repo.path):
        return config.editor
    if repo is not None and repo.editor:
        return repo.editor
    default = settings.default_editor if settings is not None else None
    if default in EDITORS:
        return default
    return FALLBACK_EDITOR


class EditorLauncher:
    """Opens a directory in one of the supported editors."""

    def is_available(self, editor: str) -> bool:
        config = EDITORS.get(editor)
        return config is not None and shutil.which(config.command) is not None

    def open(self, path: str, editor: str) -> None:
        config = EDITORS.get(editor)
        if config is None:
            raise EditorLaunchError(f"Unknown editor: {editor}")

        command = [config.command, *config.args, path]
        logger.debug(f"Launching editor: {' '.join(command)}")
        try:
            result = subprocess.run(command)
        except OSError as e:
            logger.debug(f"Editor launch failed: {e}")
            raise EditorLaunchError(
                f"Failed to open {editor}. Make sure '{config.command}' is installed and available in PATH"
            )
        if result.returncode != 0:
            raise EditorLaunchError(f"{editor} exited with code {result.returncode} opening {path}")
        logger.info(f"Opened {path} in {editor}")
