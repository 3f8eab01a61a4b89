"""Worktree data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Worktree:
    """A catalogued working tree bound to a tracker issue."""

    id: int
    repo_id: int
    issue_id: str
    issue_identifier: str
    issue_title: Optional[str]
    branch_name: str
    path: str
    created_at: str

    @classmethod
    def from_row(cls, row) -> "Worktree":
        return cls(
            id=row["id"],
            repo_id=row["repo_id"],
            issue_id=row["issue_id"],
            issue_identifier=row["issue_identifier"],
            issue_title=row["issue_title"],
            branch_name=row["branch_name"],
            path=row["path"],
            created_at=row["created_at"],
        )


@dataclass(frozen=True)
class WorktreeWithRepo(Worktree):
    """Worktree joined with its owning repository for display."""

    repo_name: str = ""
    repo_path: str = ""

    @classmethod
    def from_row(cls, row) -> "WorktreeWithRepo":
        base = Worktree.from_row(row)
        return cls(**base.__dict__, repo_name=row["repo_name"], repo_path=row["repo_path"])


@dataclass
class WorktreeInfo:
    """Information about a git worktree."""

    path: str
    branch_name: str
    commit_sha: str
    is_main: bool  # Is this the main working tree?
    is_orphaned: bool  # Directory missing?

    def __str__(self) -> str:
        """String representation of worktree."""
        status = "orphaned" if self.is_orphaned else "active"
        main_marker = " (main)" if self.is_main else ""
        return f"{self.branch_name} @ {self.path}{main_marker} [{status}]"
