"""Step state machine shared by all relay workflows."""

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple, TYPE_CHECKING

from relay_cli.exceptions import RelayError, WorkflowCancelled
from relay_cli.utils.logging import get_logger
from relay_cli.utils.signals import defer_interrupts

if TYPE_CHECKING:
    from relay_cli.context import RelayContext

logger = get_logger(__name__)


class Step(str, Enum):
    INIT = "init"
    SELECT_REPO = "select_repo"
    FETCH_CONTEXT = "fetch_context"
    ANALYZE = "analyze"
    PREVIEW = "preview"
    CREATE_ISSUE = "create_issue"
    MATERIALIZE_WORKTREE = "materialize_worktree"
    FETCH_ISSUE = "fetch_issue"
    CHECK_EXISTING = "check_existing"
    CREATE_WORKTREE = "create_worktree"
    OPEN_EDITOR = "open_editor"
    SELECT = "select"
    REMOVE = "remove"
    COLLECT = "collect"
    GENERATE = "generate"
    COMMIT = "commit"
    CREATE_PR = "create_pr"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_STEPS = frozenset({Step.COMPLETE, Step.ERROR})


@dataclass
class WorkflowResult:
    """Final state of a workflow run."""

    step: Step
    error: Optional[RelayError] = None
    headline: str = ""
    summary: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.step == Step.COMPLETE


class Workflow:
    """Runs ``execute`` through an ordered list of steps.

    Steps only move forward through ``STEPS`` (skipping is allowed); ERROR is
    reachable from any non-terminal step; COMPLETE and ERROR are absorbing.
    Steps in ``MUTATING`` change external state and hold Ctrl-C until they
    finish.
    """

    name = "workflow"
    STEPS: Tuple[Step, ...] = ()
    MUTATING: FrozenSet[Step] = frozenset()

    def __init__(self, ctx: "RelayContext"):
        self.ctx = ctx
        self.step = self.STEPS[0] if self.STEPS else Step.INIT
        self.error: Optional[RelayError] = None
        self.headline = ""
        self.summary: Dict[str, str] = {}

    def advance(self, step: Step) -> None:
        """Move to ``step``, enforcing the forward-only progression."""
        if self.step in TERMINAL_STEPS:
            raise RuntimeError(f"{self.name}: cannot leave terminal step {self.step.value}")
        if step != Step.ERROR:
            order = self.STEPS + (Step.COMPLETE,)
            if step not in order:
                raise RuntimeError(f"{self.name}: {step.value} is not a step of this workflow")
            if step != self.step and order.index(step) < order.index(self.step):
                raise RuntimeError(
                    f"{self.name}: cannot go back from {self.step.value} to {step.value}"
                )

        if step != self.step:
            logger.debug(f"{self.name}: {self.step.value} -> {step.value}")
        self.step = step

    @contextmanager
    def stage(self, step: Step):
        """Enter ``step`` for the duration of the block."""
        self.advance(step)
        if step in self.MUTATING:
            with defer_interrupts(step.value.replace("_", " ")):
                yield
        else:
            yield

    def fail(self, error: RelayError) -> None:
        logger.debug(f"{self.name}: failed during {self.step.value}: {error}")
        self.error = error
        self.advance(Step.ERROR)

    def execute(self) -> None:
        raise NotImplementedError

    def run(self) -> WorkflowResult:
        try:
            self.execute()
        except RelayError as e:
            self.fail(e)
        except KeyboardInterrupt:
            self.fail(WorkflowCancelled())
        else:
            self.advance(Step.COMPLETE)
        return WorkflowResult(
            step=self.step, error=self.error, headline=self.headline, summary=self.summary
        )


def note_orphaned_issue(error: RelayError, identifier: str) -> RelayError:
    """Name the tracker issue a later local failure left without a worktree."""
    error.message = (
        f"{error.message}. Issue {identifier} was created in Linear but has no worktree"
    )
    error.args = (error.message,)
    error.hint = f"relay {identifier}"
    return error
