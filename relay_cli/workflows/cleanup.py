"""Remove a worktree from disk and from the catalog."""

import os
from typing import Optional, TYPE_CHECKING

from relay_cli.exceptions import NotAGitRepositoryError, WorktreeNotFoundError, WorktreeRemovalError
from relay_cli.models.worktree import Worktree
from relay_cli.utils.logging import get_logger
from relay_cli.workflows.base import Step, Workflow

if TYPE_CHECKING:
    from relay_cli.context import RelayContext

logger = get_logger(__name__)


class CleanupWorkflow(Workflow):
    """Git removal first; the catalog row goes only once git is done with it.

    A directory deleted by hand is pruned from git's metadata and then treated
    as removed. A dirty worktree is refused unless ``force`` is set.
    """

    name = "cleanup"
    STEPS = (Step.SELECT, Step.REMOVE)
    MUTATING = frozenset({Step.REMOVE})

    def __init__(self, ctx: "RelayContext", identifier: Optional[str] = None, force: bool = False):
        super().__init__(ctx)
        self.identifier = identifier.strip().upper() if identifier else None
        self.force = force
        self.worktree: Optional[Worktree] = None

    def execute(self) -> None:
        with self.stage(Step.SELECT):
            if self.identifier:
                self.worktree = self.ctx.catalog.get_worktree_by_issue_identifier(self.identifier)
                if self.worktree is None:
                    raise WorktreeNotFoundError(self.identifier)
            else:
                worktrees = self.ctx.catalog.list_all_worktrees()
                if not worktrees:
                    self.headline = "No worktrees to clean up"
                    return
                self.worktree = self.ctx.prompter.select(
                    "Select a worktree to remove",
                    [
                        (f"{wt.issue_identifier} - {wt.issue_title or 'No title'} ({wt.repo_name})", wt)
                        for wt in worktrees
                    ],
                )

        with self.stage(Step.REMOVE):
            self._remove(self.worktree)

        self.headline = f"Removed worktree for {self.worktree.issue_identifier}"
        self.summary = {"Branch": self.worktree.branch_name, "Path": self.worktree.path}

    def _remove(self, worktree: Worktree) -> None:
        repo = self.ctx.catalog.get_repository_by_id(worktree.repo_id)
        try:
            if os.path.isdir(worktree.path):
                self.ctx.worktrees.remove_worktree(repo.path, worktree.path, force=self.force)
            else:
                logger.info(f"{worktree.path} no longer exists; pruning worktree metadata")
                self.ctx.worktrees.prune_worktrees(repo.path)
        except WorktreeRemovalError as e:
            if not self.force:
                e.hint = f"relay cleanup {worktree.issue_identifier} --force"
            raise
        except NotAGitRepositoryError:
            if not self.force:
                raise
            logger.warning(f"Repository {repo.path} is gone; dropping catalog entry only")

        self.ctx.catalog.delete_worktree(worktree.id)
