"""Data models for relay."""

from .repository import Repository
from .worktree import Worktree, WorktreeWithRepo, WorktreeInfo
from .issue import Team, Project, Label, TrackerContext, IssueDraft, Issue

__all__ = [
    "Repository",
    "Worktree",
    "WorktreeWithRepo",
    "WorktreeInfo",
    "Team",
    "Project",
    "Label",
    "TrackerContext",
    "IssueDraft",
    "Issue",
]
