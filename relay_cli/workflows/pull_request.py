"""Open a GitHub pull request with AI-written title and description."""

from typing import List, Optional, TYPE_CHECKING

from relay_cli.constants import DEFAULT_BASE_BRANCH
from relay_cli.exceptions import ConfigurationMissing, GitStateError, WorkflowCancelled
from relay_cli.services.git.history import extract_issue_identifier
from relay_cli.utils.logging import get_logger
from relay_cli.workflows.base import Step, Workflow

if TYPE_CHECKING:
    from relay_cli.context import RelayContext

logger = get_logger(__name__)


def append_issue_link(description: str, issue_identifier: Optional[str]) -> str:
    if not issue_identifier:
        return description
    return f"{description}\n\n---\n\nLinear Issue: {issue_identifier}"


class PullRequestWorkflow(Workflow):
    name = "pr"
    STEPS = (Step.INIT, Step.COLLECT, Step.GENERATE, Step.PREVIEW, Step.CREATE_PR)
    MUTATING = frozenset({Step.CREATE_PR})

    def __init__(self, ctx: "RelayContext", base_branch: Optional[str] = None, draft: bool = False):
        super().__init__(ctx)
        self.base_branch = base_branch
        self.draft = draft
        self.branch = ""
        self.reviewers: List[str] = []
        self.title = ""
        self.description = ""

    def execute(self) -> None:
        with self.stage(Step.INIT):
            generator = self.ctx.generator()
            if not self.ctx.settings.github_token:
                raise ConfigurationMissing(
                    "GitHub token not found", hint="relay config set-key github <token>"
                )
            history = self.ctx.history()
            if not self.base_branch:
                config = self.ctx.config
                self.base_branch = config.base_branch if config else DEFAULT_BASE_BRANCH

        with self.stage(Step.COLLECT):
            self.branch = history.current_branch()
            if not self.branch or self.branch == self.base_branch:
                raise GitStateError(
                    "create_pull_request",
                    message=f"You're on {self.base_branch or 'a detached HEAD'}. "
                    "Please switch to a feature branch first",
                )
            commits = history.commits_since(self.base_branch)
            if not commits:
                raise GitStateError(
                    "create_pull_request",
                    self.branch,
                    f"No commits found compared to {self.base_branch}. Nothing to create a PR for",
                )
            diff = history.diff_since(self.base_branch)
            files = history.changed_files_since(self.base_branch)
            self.reviewers = history.suggest_reviewers(files)

        with self.stage(Step.GENERATE):
            self.title, description = generator.generate_pr_content(commits, diff, files)
            self.description = append_issue_link(
                description, extract_issue_identifier(self.branch)
            )

        with self.stage(Step.PREVIEW):
            self.ctx.display.display_pr_preview(
                self.title, self.description, self.base_branch, self.branch
            )
            if not self.ctx.assume_yes and not self.ctx.prompter.confirm("Open this pull request?"):
                raise WorkflowCancelled()

        with self.stage(Step.CREATE_PR):
            service = self.ctx.pull_requests(self.ctx.cwd)
            try:
                url = service.create_pull_request(
                    self.title, self.description, self.base_branch, self.branch, draft=self.draft
                )
            finally:
                service.close()

        self.headline = "Pull Request Created!"
        self.summary = {
            "Title": self.title,
            "URL": url,
            "Suggested reviewers": ", ".join(self.reviewers[:3]),
        }
