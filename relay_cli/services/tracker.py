"""Linear issue tracker adapter (GraphQL over HTTPS)."""

from typing import Any, Dict, List, Optional

import requests

from relay_cli.constants import LINEAR_API_URL, REQUEST_TIMEOUT
from relay_cli.exceptions import IssueNotFoundError, TrackerError
from relay_cli.models.issue import Issue, IssueDraft, Label, Project, Team, TrackerContext
from relay_cli.utils.logging import get_logger

logger = get_logger(__name__)

ISSUE_FIELDS = "id identifier title branchName url"

CONTEXT_QUERY = """
query {
    teams(first: 100) { nodes { id name key } }
    projects(first: 100) {
        nodes { id name description teams(first: 1) { nodes { id } } }
    }
    issueLabels(first: 250) { nodes { id name description } }
}
"""

VIEWER_QUERY = """
query { viewer { id name email } }
"""

CREATE_ISSUE_MUTATION = f"""
mutation($input: IssueCreateInput!) {{
    issueCreate(input: $input) {{
        success
        issue {{ {ISSUE_FIELDS} }}
    }}
}}
"""

ISSUE_QUERY = f"""
query($id: String!) {{
    issue(id: $id) {{ {ISSUE_FIELDS} }}
}}
"""

MY_ISSUES_QUERY = f"""
query {{
    viewer {{
        assignedIssues(
            first: 50
            orderBy: updatedAt
            filter: {{ state: {{ type: {{ nin: ["completed", "canceled"] }} }} }}
        ) {{
            nodes {{ {ISSUE_FIELDS} }}
        }}
    }}
}}
"""


def parse_issue(operation: str, node: Dict[str, Any]) -> Issue:
    """Build an Issue from a GraphQL node, rejecting nodes without a branch."""
    missing = [key for key in ("id", "identifier", "branchName") if not node.get(key)]
    if missing:
        raise TrackerError(operation, f"issue is missing {', '.join(missing)}")
    return Issue.from_node(node)


class LinearTracker:
    """Thin client for the parts of the Linear API relay needs.

    Every failure (transport, HTTP status, GraphQL ``errors``) is raised as
    ``TrackerError``; nothing is retried.
    """

    def __init__(self, api_key: str, session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.session = session or requests.Session()

    def _execute(self, operation: str, query: str, variables: Optional[Dict[str, Any]] = None) -> dict:
        headers = {"Authorization": self.api_key, "Content-Type": "application/json"}
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        logger.debug(f"Linear request: {operation}")
        try:
            resp = self.session.post(
                LINEAR_API_URL, json=payload, headers=headers, timeout=REQUEST_TIMEOUT
            )
        except requests.RequestException as e:
            raise TrackerError(operation, f"request failed: {e}")

        if resp.status_code == 401:
            raise TrackerError(
                operation, "invalid API key", hint="relay config set-key linear <key>"
            )
        if resp.status_code != 200:
            raise TrackerError(operation, f"HTTP {resp.status_code}: {resp.text[:500]}")

        try:
            data = resp.json()
        except ValueError:
            raise TrackerError(operation, "response was not valid JSON")

        if data.get("errors"):
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err)
                for err in data["errors"]
            )
            raise TrackerError(operation, messages)
        return data.get("data") or {}

    def get_context(self) -> TrackerContext:
        """Fetch the teams, projects and labels of the workspace."""
        data = self._execute("get_context", CONTEXT_QUERY)

        teams = [
            Team(id=node["id"], name=node["name"], key=node["key"])
            for node in data.get("teams", {}).get("nodes", [])
        ]
        projects = []
        for node in data.get("projects", {}).get("nodes", []):
            # Workspace-level projects have no team
            project_teams = (node.get("teams") or {}).get("nodes") or []
            projects.append(
                Project(
                    id=node["id"],
                    name=node["name"],
                    description=node.get("description") or None,
                    team_id=project_teams[0]["id"] if project_teams else "",
                )
            )
        labels = [
            Label(id=node["id"], name=node["name"], description=node.get("description") or None)
            for node in data.get("issueLabels", {}).get("nodes", [])
        ]

        logger.debug(
            f"Linear context: {len(teams)} teams, {len(projects)} projects, {len(labels)} labels"
        )
        return TrackerContext(teams=teams, projects=projects, labels=labels)

    def get_viewer_id(self) -> str:
        data = self._execute("viewer", VIEWER_QUERY)
        viewer = data.get("viewer")
        if not viewer:
            raise TrackerError("viewer", "no authenticated user")
        return viewer["id"]

    def create_issue(self, team_id: str, draft: IssueDraft) -> Issue:
        """Create an issue from ``draft`` in ``team_id``, assigned to the caller."""
        issue_input: Dict[str, Any] = {
            "teamId": team_id,
            "title": draft.title,
            "description": draft.description,
            "priority": draft.priority,
            "assigneeId": self.get_viewer_id(),
        }
        if draft.project_id:
            issue_input["projectId"] = draft.project_id
        if draft.label_ids:
            issue_input["labelIds"] = list(draft.label_ids)

        data = self._execute("create_issue", CREATE_ISSUE_MUTATION, {"input": issue_input})
        result = data.get("issueCreate") or {}
        if not result.get("success") or not result.get("issue"):
            raise TrackerError("create_issue", "Issue creation returned no issue")

        issue = parse_issue("create_issue", result["issue"])
        logger.info(f"Created Linear issue {issue.identifier}: {issue.title}")
        return issue

    def get_issue(self, identifier: str) -> Issue:
        """Fetch an issue by identifier such as ``ENG-123``."""
        identifier = identifier.upper()
        try:
            data = self._execute("get_issue", ISSUE_QUERY, {"id": identifier})
        except TrackerError as e:
            if e.detail and "not found" in e.detail.lower():
                raise IssueNotFoundError(identifier)
            raise

        node = data.get("issue")
        if not node:
            raise IssueNotFoundError(identifier)
        return parse_issue("get_issue", node)

    def get_my_issues(self) -> List[Issue]:
        """Open issues assigned to the authenticated user."""
        data = self._execute("get_my_issues", MY_ISSUES_QUERY)
        viewer = data.get("viewer") or {}
        nodes = (viewer.get("assignedIssues") or {}).get("nodes") or []
        return [parse_issue("get_my_issues", node) for node in nodes]

    def test_connection(self) -> bool:
        """Whether the API key authenticates."""
        try:
            self.get_viewer_id()
        except TrackerError as e:
            logger.debug(f"Linear connection test failed: {e}")
            return False
        return True
