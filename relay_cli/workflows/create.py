"""Task description -> Linear issue -> worktree -> editor."""

from typing import Optional, TYPE_CHECKING

from relay_cli.exceptions import ConfigurationMissing, RelayError, WorkflowCancelled
from relay_cli.models.issue import Issue, IssueDraft, Team, TrackerContext
from relay_cli.models.repository import Repository
from relay_cli.services.generator import IssueGenerator
from relay_cli.services.tracker import LinearTracker
from relay_cli.utils.logging import get_logger
from relay_cli.workflows.base import Step, Workflow, note_orphaned_issue
from relay_cli.workflows.common import (
    find_or_create_worktree,
    persist_worktree,
    resolve_repository,
    select_team,
    worktree_summary,
)

if TYPE_CHECKING:
    from relay_cli.context import RelayContext

logger = get_logger(__name__)


class CreateWorkflow(Workflow):
    """Draft an issue from a task with AI, create it, then open a worktree for it.

    The catalog is only written once both the issue and the worktree exist.
    If the worktree step fails the created issue stays in Linear and the error
    names it so ``relay <ID>`` can pick it up.
    """

    name = "create"
    STEPS = (
        Step.INIT,
        Step.SELECT_REPO,
        Step.FETCH_CONTEXT,
        Step.ANALYZE,
        Step.PREVIEW,
        Step.CREATE_ISSUE,
        Step.MATERIALIZE_WORKTREE,
        Step.OPEN_EDITOR,
    )
    MUTATING = frozenset({Step.CREATE_ISSUE, Step.MATERIALIZE_WORKTREE, Step.OPEN_EDITOR})

    def __init__(
        self,
        ctx: "RelayContext",
        task: str,
        repo_name: Optional[str] = None,
        team_key: Optional[str] = None,
    ):
        super().__init__(ctx)
        self.task = task.strip()
        self.repo_name = repo_name
        self.team_key = team_key

        self.repo: Optional[Repository] = None
        self.tracker_context: Optional[TrackerContext] = None
        self.team: Optional[Team] = None
        self.draft: Optional[IssueDraft] = None
        self.issue: Optional[Issue] = None
        self.worktree_path: Optional[str] = None

    def execute(self) -> None:
        with self.stage(Step.INIT):
            if not self.task:
                raise RelayError("Task description cannot be empty", hint='relay "<task>"')
            if not self.ctx.settings.has_required_keys():
                raise ConfigurationMissing("API keys not found")
            tracker: LinearTracker = self.ctx.tracker()
            generator: IssueGenerator = self.ctx.generator()

        with self.stage(Step.SELECT_REPO):
            self.repo = resolve_repository(self.ctx, self.repo_name)

        with self.stage(Step.FETCH_CONTEXT):
            self.tracker_context = tracker.get_context()
            self.team = select_team(self.ctx, self.tracker_context, self.repo, self.team_key)
            logger.debug(f"Using team {self.team.key}")

        with self.stage(Step.ANALYZE):
            self.draft = generator.analyze_task(self.task, self.tracker_context)

        with self.stage(Step.PREVIEW):
            self.ctx.display.display_issue_preview(self.draft, self.tracker_context, self.team)
            if not self.ctx.assume_yes and not self.ctx.prompter.confirm("Create this issue?"):
                raise WorkflowCancelled()

        try:
            with self.stage(Step.CREATE_ISSUE):
                self.issue = tracker.create_issue(self.team.id, self.draft)
        except WorkflowCancelled as e:
            # Ctrl-C is held until the issue exists; it must not be lost silently
            if self.issue is not None:
                raise note_orphaned_issue(e, self.issue.identifier)
            raise

        with self.stage(Step.MATERIALIZE_WORKTREE):
            try:
                self.worktree_path, created = find_or_create_worktree(
                    self.ctx, self.repo, self.issue
                )
                persist_worktree(self.ctx, self.repo, self.issue, self.worktree_path)
            except RelayError as e:
                raise note_orphaned_issue(e, self.issue.identifier)
            if not created:
                logger.info(f"Reusing existing worktree at {self.worktree_path}")

        editor = self.ctx.editor_for(self.repo)
        with self.stage(Step.OPEN_EDITOR):
            self.ctx.editor.open(self.worktree_path, editor)

        self.headline = "Issue created and worktree ready!"
        self.summary = worktree_summary(self.issue, self.worktree_path, editor)
