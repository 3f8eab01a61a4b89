"""Tracker and issue-draft models."""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    key: str


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    description: Optional[str] = None
    team_id: str = ""


@dataclass(frozen=True)
class Label:
    id: str
    name: str
    description: Optional[str] = None


@dataclass
class TrackerContext:
    """Teams, projects and labels available in the tracker workspace."""

    teams: List[Team] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    labels: List[Label] = field(default_factory=list)

    def find_team(self, key: str) -> Optional[Team]:
        """Find a team by key (case-insensitive) or id."""
        for team in self.teams:
            if team.key.upper() == key.upper() or team.id == key:
                return team
        return None

    def project_name(self, project_id: Optional[str]) -> Optional[str]:
        for project in self.projects:
            if project.id == project_id:
                return project.name
        return None

    def label_names(self, label_ids: List[str]) -> List[str]:
        return [label.name for label in self.labels if label.id in label_ids]


@dataclass
class IssueDraft:
    """Structured issue content drafted by the generator."""

    title: str
    description: str = ""
    project_id: Optional[str] = None
    label_ids: List[str] = field(default_factory=list)
    priority: int = 3  # 0=None, 1=Urgent, 2=High, 3=Normal, 4=Low

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValueError("issue title cannot be empty")
        if self.priority not in range(5):
            raise ValueError(f"priority must be between 0 and 4, got {self.priority}")

    @classmethod
    def from_dict(cls, data: dict) -> "IssueDraft":
        """Create an IssueDraft from the generator's JSON object."""
        priority = data.get("priority", 3)
        try:
            priority = int(priority)
        except (TypeError, ValueError):
            priority = 3
        return cls(
            title=str(data.get("title", "")).strip(),
            description=str(data.get("description") or ""),
            project_id=data.get("projectId") or None,
            label_ids=[str(label) for label in data.get("labelIds") or []],
            priority=min(max(priority, 0), 4),
        )


@dataclass(frozen=True)
class Issue:
    """An issue as returned by the tracker."""

    id: str
    identifier: str
    title: str
    branch_name: str
    url: str = ""

    @classmethod
    def from_node(cls, node: dict) -> "Issue":
        return cls(
            id=node["id"],
            identifier=node["identifier"],
            title=node.get("title") or "",
            branch_name=node["branchName"],
            url=node.get("url") or "",
        )
