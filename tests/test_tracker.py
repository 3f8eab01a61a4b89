"""Tests for the Linear tracker adapter"""
from unittest.mock import Mock

import pytest
import requests

from relay_cli.exceptions import IssueNotFoundError, TrackerError
from relay_cli.models.issue import IssueDraft
from relay_cli.services.tracker import LinearTracker


def response(status=200, data=None, errors=None):
    resp = Mock()
    resp.status_code = status
    resp.text = "body"
    payload = {}
    if data is not None:
        payload["data"] = data
    if errors is not None:
        payload["errors"] = errors
    resp.json.return_value = payload
    return resp


def tracker_with(*responses):
    session = Mock(spec=requests.Session)
    session.post.side_effect = list(responses)
    return LinearTracker("lin_api_key", session=session), session


ISSUE_NODE = {
    "id": "uuid-42",
    "identifier": "ENG-42",
    "title": "Fix login bug",
    "branchName": "eng-42-fix-login-bug",
    "url": "https://linear.app/acme/issue/ENG-42",
}


class TestRequests:
    """Test transport and error mapping."""

    def test_authorization_header(self):
        tracker, session = tracker_with(response(data={"viewer": {"id": "me"}}))
        tracker.get_viewer_id()

        _, kwargs = session.post.call_args
        assert kwargs["headers"]["Authorization"] == "lin_api_key"
        assert "viewer" in kwargs["json"]["query"]

    def test_unauthorized(self):
        tracker, _ = tracker_with(response(status=401))
        with pytest.raises(TrackerError) as exc_info:
            tracker.get_context()
        assert exc_info.value.hint == "relay config set-key linear <key>"

    def test_http_error(self):
        tracker, _ = tracker_with(response(status=500))
        with pytest.raises(TrackerError, match="HTTP 500"):
            tracker.get_context()

    def test_graphql_errors(self):
        tracker, _ = tracker_with(response(errors=[{"message": "Rate limited"}]))
        with pytest.raises(TrackerError, match="Rate limited"):
            tracker.get_context()

    def test_connection_error(self):
        session = Mock(spec=requests.Session)
        session.post.side_effect = requests.ConnectionError("offline")
        tracker = LinearTracker("key", session=session)
        with pytest.raises(TrackerError, match="offline"):
            tracker.get_context()

    def test_test_connection(self):
        tracker, _ = tracker_with(response(data={"viewer": {"id": "me"}}))
        assert tracker.test_connection() is True

        tracker, _ = tracker_with(response(status=401))
        assert tracker.test_connection() is False


class TestContext:
    """Test workspace context parsing."""

    def test_get_context(self):
        tracker, _ = tracker_with(response(data={
            "teams": {"nodes": [{"id": "T1", "name": "Engineering", "key": "ENG"}]},
            "projects": {"nodes": [
                {"id": "P1", "name": "Auth", "description": None, "teams": {"nodes": [{"id": "T1"}]}},
                {"id": "P2", "name": "Global", "description": "All", "teams": {"nodes": []}},
            ]},
            "issueLabels": {"nodes": [{"id": "L1", "name": "bug", "description": None}]},
        }))
        context = tracker.get_context()

        assert context.find_team("eng").id == "T1"
        assert [p.team_id for p in context.projects] == ["T1", ""]
        assert context.projects[0].description is None
        assert context.label_names(["L1"]) == ["bug"]


class TestIssues:
    """Test issue creation and lookup."""

    def test_create_issue_assigns_viewer(self):
        tracker, session = tracker_with(
            response(data={"viewer": {"id": "me"}}),
            response(data={"issueCreate": {"success": True, "issue": ISSUE_NODE}}),
        )
        draft = IssueDraft(title="Fix login bug", project_id="P1", label_ids=["L1"], priority=2)

        issue = tracker.create_issue("T1", draft)

        assert issue.identifier == "ENG-42"
        assert issue.branch_name == "eng-42-fix-login-bug"
        issue_input = session.post.call_args[1]["json"]["variables"]["input"]
        assert issue_input == {
            "teamId": "T1",
            "title": "Fix login bug",
            "description": "",
            "priority": 2,
            "assigneeId": "me",
            "projectId": "P1",
            "labelIds": ["L1"],
        }

    def test_create_issue_unsuccessful(self):
        tracker, _ = tracker_with(
            response(data={"viewer": {"id": "me"}}),
            response(data={"issueCreate": {"success": False, "issue": None}}),
        )
        with pytest.raises(TrackerError):
            tracker.create_issue("T1", IssueDraft(title="x"))

    def test_get_issue_uppercases(self):
        tracker, session = tracker_with(response(data={"issue": ISSUE_NODE}))
        issue = tracker.get_issue("eng-42")
        assert issue.title == "Fix login bug"
        assert session.post.call_args[1]["json"]["variables"] == {"id": "ENG-42"}

    def test_get_issue_not_found(self):
        tracker, _ = tracker_with(response(errors=[{"message": "Entity not found"}]))
        with pytest.raises(IssueNotFoundError):
            tracker.get_issue("ENG-404")

    def test_get_issue_null(self):
        tracker, _ = tracker_with(response(data={"issue": None}))
        with pytest.raises(IssueNotFoundError):
            tracker.get_issue("ENG-404")

    @pytest.mark.parametrize("node", [
        {k: v for k, v in ISSUE_NODE.items() if k != "branchName"},
        dict(ISSUE_NODE, branchName=None),
    ])
    def test_get_issue_without_branch(self, node):
        tracker, _ = tracker_with(response(data={"issue": node}))
        with pytest.raises(TrackerError, match="branchName"):
            tracker.get_issue("ENG-42")

    def test_get_my_issues(self):
        tracker, _ = tracker_with(
            response(data={"viewer": {"assignedIssues": {"nodes": [ISSUE_NODE]}}})
        )
        assert [i.identifier for i in tracker.get_my_issues()] == ["ENG-42"]
