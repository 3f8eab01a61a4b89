"""Git-related services for relay."""

from .worktrees import WorktreeManager
from .history import GitHistory, build_commit_message, extract_issue_identifier
from .github import PullRequestService

__all__ = [
    "WorktreeManager",
    "GitHistory",
    "PullRequestService",
    "build_commit_message",
    "extract_issue_identifier",
]
