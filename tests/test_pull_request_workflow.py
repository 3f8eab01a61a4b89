"""Tests for the pull request workflow"""
from pathlib import Path
from unittest.mock import Mock

import pytest

from relay_cli.config import RelayConfig
from relay_cli.constants import SETTING_GITHUB_TOKEN
from relay_cli.exceptions import ConfigurationMissing, GitHubAPIError, GitStateError
from relay_cli.services.git.github import PullRequestService
from relay_cli.workflows import PullRequestWorkflow
from relay_cli.workflows.pull_request import append_issue_link


@pytest.fixture
def mock_pr_service():
    service = Mock(spec=PullRequestService)
    service.create_pull_request.return_value = "https://github.com/test/demo/pull/7"
    return service


@pytest.fixture
def pr_ctx(ctx, git_repo, mock_pr_service):
    """Context on a feature branch with one commit and a GitHub token."""
    ctx.settings.set(SETTING_GITHUB_TOKEN, "ghp_test")
    ctx.github_factory = lambda repo_path, token: mock_pr_service
    ctx.cwd = git_repo.working_dir

    git_repo.git.checkout("-b", "eng-42-fix-login-bug")
    (Path(git_repo.working_dir) / "login.py").write_text("fixed = True\n")
    git_repo.index.add(["login.py"])
    git_repo.index.commit("fix: login redirect")
    return ctx


class TestAppendIssueLink:
    def test_with_issue(self):
        assert append_issue_link("Body", "ENG-42") == "Body\n\n---\n\nLinear Issue: ENG-42"

    def test_without_issue(self):
        assert append_issue_link("Body", None) == "Body"


class TestPullRequestWorkflow:
    """Test AI-written pull requests."""

    def test_creates_pull_request(self, pr_ctx, mock_pr_service, mock_generator):
        result = PullRequestWorkflow(pr_ctx, draft=True).run()

        assert result.ok, result.error
        assert result.summary["URL"] == "https://github.com/test/demo/pull/7"
        mock_pr_service.create_pull_request.assert_called_once_with(
            "fix: login redirect",
            "Fixes the redirect loop.\n\n---\n\nLinear Issue: ENG-42",
            "main",
            "eng-42-fix-login-bug",
            draft=True,
        )
        mock_pr_service.close.assert_called_once()
        commits, diff, files = mock_generator.generate_pr_content.call_args[0]
        assert commits == ["fix: login redirect"]
        assert files == ["login.py"]

    def test_base_branch_from_config(self, pr_ctx, git_repo, mock_pr_service):
        git_repo.git.branch("develop", "main")
        pr_ctx.config = RelayConfig(repo_base=git_repo.working_dir, base_branch="develop")

        assert PullRequestWorkflow(pr_ctx).run().ok
        assert mock_pr_service.create_pull_request.call_args[0][2] == "develop"

    def test_on_base_branch(self, pr_ctx, git_repo, mock_pr_service):
        git_repo.git.checkout("main")
        result = PullRequestWorkflow(pr_ctx).run()

        assert isinstance(result.error, GitStateError)
        mock_pr_service.create_pull_request.assert_not_called()

    def test_no_commits_ahead(self, pr_ctx, git_repo):
        git_repo.git.checkout("main")
        git_repo.git.checkout("-b", "eng-43-empty")

        result = PullRequestWorkflow(pr_ctx).run()

        assert isinstance(result.error, GitStateError)
        assert "No commits" in result.error.message

    def test_requires_github_token(self, pr_ctx):
        pr_ctx.settings.delete(SETTING_GITHUB_TOKEN)
        result = PullRequestWorkflow(pr_ctx).run()
        assert isinstance(result.error, ConfigurationMissing)

    def test_github_failure_closes_service(self, pr_ctx, mock_pr_service):
        mock_pr_service.create_pull_request.side_effect = GitHubAPIError(
            "create_pull_request", "Validation Failed", hint="git push -u origin eng-42-fix-login-bug"
        )

        result = PullRequestWorkflow(pr_ctx).run()

        assert isinstance(result.error, GitHubAPIError)
        assert result.error.hint == "git push -u origin eng-42-fix-login-bug"
        mock_pr_service.close.assert_called_once()
