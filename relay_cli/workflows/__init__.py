"""Command workflows for relay.

Each workflow is a forward-only step machine (see ``base``):
- create: task -> AI draft -> Linear issue -> worktree -> editor
- open: issue identifier or assigned-issue pick -> worktree -> editor
- cleanup: git worktree removal, then catalog row deletion
- commit / pull_request: AI-written commit and PR text
"""

from .base import Step, Workflow, WorkflowResult
from .routing import IssueReference, TaskDescription, classify_input
from .create import CreateWorkflow
from .open import OpenWorkflow, ReopenWorkflow
from .cleanup import CleanupWorkflow
from .commit import CommitWorkflow
from .pull_request import PullRequestWorkflow

__all__ = [
    "Step",
    "Workflow",
    "WorkflowResult",
    "IssueReference",
    "TaskDescription",
    "classify_input",
    "CreateWorkflow",
    "OpenWorkflow",
    "ReopenWorkflow",
    "CleanupWorkflow",
    "CommitWorkflow",
    "PullRequestWorkflow",
]
