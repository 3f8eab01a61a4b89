"""AI-written commit with issue link and co-author trailers."""

from typing import List, Optional, TYPE_CHECKING

from relay_cli.exceptions import GitStateError, WorkflowCancelled
from relay_cli.services.git.history import build_commit_message, extract_issue_identifier
from relay_cli.utils.logging import get_logger
from relay_cli.workflows.base import Step, Workflow

if TYPE_CHECKING:
    from relay_cli.context import RelayContext

logger = get_logger(__name__)


class CommitWorkflow(Workflow):
    name = "commit"
    STEPS = (Step.INIT, Step.COLLECT, Step.GENERATE, Step.PREVIEW, Step.COMMIT)
    MUTATING = frozenset({Step.COMMIT})

    def __init__(self, ctx: "RelayContext"):
        super().__init__(ctx)
        self.files: List[str] = []
        self.co_authors: List[str] = []
        self.issue_identifier: Optional[str] = None
        self.message = ""

    def execute(self) -> None:
        with self.stage(Step.INIT):
            generator = self.ctx.generator()
            history = self.ctx.history()

        with self.stage(Step.COLLECT):
            self.files = history.staged_files()
            if not self.files:
                raise GitStateError(
                    "commit", message="No staged changes", hint="git add <files>"
                )
            diff = history.staged_diff()
            self.co_authors = history.co_authors(self.files)
            self.issue_identifier = extract_issue_identifier(history.current_branch())

        with self.stage(Step.GENERATE):
            self.message = generator.generate_commit_message(self.files, diff)

        with self.stage(Step.PREVIEW):
            self.ctx.display.display_commit_preview(
                self.message, self.issue_identifier, self.co_authors
            )
            if not self.ctx.assume_yes and not self.ctx.prompter.confirm("Create this commit?"):
                raise WorkflowCancelled()

        with self.stage(Step.COMMIT):
            sha = history.commit(
                build_commit_message(self.message, self.issue_identifier, self.co_authors)
            )

        self.headline = "Commit created successfully!"
        self.summary = {
            "Commit": sha[:8],
            "Message": self.message.splitlines()[0],
            "Linear": self.issue_identifier or "",
            "Co-authors": ", ".join(self.co_authors),
        }
