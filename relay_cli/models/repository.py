"""Repository model."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Repository:
    """A git checkout registered in the catalog."""

    id: int
    name: str
    path: str
    worktree_base: str
    editor: Optional[str]
    created_at: str

    @classmethod
    def from_row(cls, row) -> "Repository":
        return cls(
            id=row["id"],
            name=row["name"],
            path=row["path"],
            worktree_base=row["worktree_base"],
            editor=row["editor"],
            created_at=row["created_at"],
        )
