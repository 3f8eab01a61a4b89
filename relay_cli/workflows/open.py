"""Open an existing issue (by identifier, or picked from "assigned to me")."""

import os
from typing import Optional, TYPE_CHECKING

from relay_cli.exceptions import NotFoundError, WorktreeNotFoundError
from relay_cli.models.issue import Issue
from relay_cli.models.repository import Repository
from relay_cli.utils.logging import get_logger
from relay_cli.workflows.base import Step, Workflow
from relay_cli.workflows.common import (
    create_worktree_for,
    persist_worktree,
    resolve_repository,
    worktree_summary,
)

if TYPE_CHECKING:
    from relay_cli.context import RelayContext

logger = get_logger(__name__)


class OpenWorkflow(Workflow):
    """Fetch an issue, reuse or create its worktree, open the editor.

    Without an identifier (``relay switch``) the user picks one of the
    issues assigned to them.
    """

    name = "open"
    STEPS = (
        Step.INIT,
        Step.SELECT_REPO,
        Step.FETCH_ISSUE,
        Step.CHECK_EXISTING,
        Step.CREATE_WORKTREE,
        Step.OPEN_EDITOR,
    )
    MUTATING = frozenset({Step.CHECK_EXISTING, Step.CREATE_WORKTREE, Step.OPEN_EDITOR})

    def __init__(
        self, ctx: "RelayContext", identifier: Optional[str] = None, repo_name: Optional[str] = None
    ):
        super().__init__(ctx)
        self.identifier = identifier.strip().upper() if identifier else None
        self.repo_name = repo_name

        self.repo: Optional[Repository] = None
        self.issue: Optional[Issue] = None
        self.worktree_path: Optional[str] = None
        self.created = False

    def execute(self) -> None:
        with self.stage(Step.INIT):
            tracker = self.ctx.tracker()

        with self.stage(Step.SELECT_REPO):
            self.repo = resolve_repository(self.ctx, self.repo_name)

        with self.stage(Step.FETCH_ISSUE):
            if self.identifier:
                self.issue = tracker.get_issue(self.identifier)
            else:
                issues = tracker.get_my_issues()
                if not issues:
                    raise NotFoundError("No assigned issues found", hint='relay "<task>"')
                self.issue = self.ctx.prompter.select(
                    "Select an issue to work on",
                    [(f"{issue.identifier} - {issue.title}", issue) for issue in issues],
                )

        with self.stage(Step.CHECK_EXISTING):
            existing = self.ctx.worktrees.find_existing_worktree(
                self.repo.path, self.issue.branch_name
            )
            if existing is not None:
                logger.info(f"Found existing worktree for {self.issue.identifier} at {existing}")
                self.worktree_path = existing
                persist_worktree(self.ctx, self.repo, self.issue, existing)

        if self.worktree_path is None:
            with self.stage(Step.CREATE_WORKTREE):
                self.worktree_path = create_worktree_for(self.ctx, self.repo, self.issue)
                self.created = True
                persist_worktree(self.ctx, self.repo, self.issue, self.worktree_path)

        editor = self.ctx.editor_for(self.repo)
        with self.stage(Step.OPEN_EDITOR):
            self.ctx.editor.open(self.worktree_path, editor)

        self.headline = "Worktree created!" if self.created else "Opened existing worktree!"
        self.summary = worktree_summary(self.issue, self.worktree_path, editor)


class ReopenWorkflow(Workflow):
    """Open a catalogued worktree in its editor without contacting Linear."""

    name = "reopen"
    STEPS = (Step.INIT, Step.OPEN_EDITOR)
    MUTATING = frozenset({Step.OPEN_EDITOR})

    def __init__(self, ctx: "RelayContext", identifier: str):
        super().__init__(ctx)
        self.identifier = identifier.strip().upper()

    def execute(self) -> None:
        with self.stage(Step.INIT):
            worktree = self.ctx.catalog.get_worktree_by_issue_identifier(self.identifier)
            if worktree is None:
                raise WorktreeNotFoundError(self.identifier)
            if not os.path.isdir(worktree.path):
                raise NotFoundError(
                    f"Worktree directory is missing: {worktree.path}",
                    hint=f"relay cleanup {self.identifier}",
                )
            repo = self.ctx.catalog.get_repository_by_id(worktree.repo_id)
            editor = self.ctx.editor_for(repo)

        with self.stage(Step.OPEN_EDITOR):
            self.ctx.editor.open(worktree.path, editor)

        self.headline = f"Opened {worktree.issue_identifier}"
        self.summary = {
            "Title": worktree.issue_title or "",
            "Branch": worktree.branch_name,
            "Worktree": worktree.path,
            "Editor": editor,
        }
