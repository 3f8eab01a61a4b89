"""Tests for PullRequestService"""
from unittest.mock import Mock, patch

import pytest
from github import GithubException

from relay_cli.exceptions import ConfigurationMissing, GitHubAPIError
from relay_cli.services.git.github import PullRequestService, parse_github_repo


class TestParseGithubRepo:
    """Test remote URL parsing."""

    @pytest.mark.parametrize("url,expected", [
        ("git@github.com:test/repo.git", "test/repo"),
        ("https://github.com/test/repo.git", "test/repo"),
        ("https://github.com/test/repo", "test/repo"),
        ("git@gitlab.com:test/repo.git", None),
    ])
    def test_parse(self, url, expected):
        assert parse_github_repo(url) == expected


class TestPullRequestServiceSetup:
    """Test GitHub API setup."""

    def test_setup_without_token(self, git_repo):
        """Test a missing token is a configuration problem."""
        service = PullRequestService(git_repo.working_dir, None)
        with pytest.raises(ConfigurationMissing):
            service.setup_github_api()

    def test_setup_with_github_remote(self, git_repo):
        """Test setup resolves org/repo from the origin remote."""
        service = PullRequestService(git_repo.working_dir, "test_token")

        with patch("relay_cli.services.git.github.Github") as mock_github_class:
            mock_gh = Mock()
            mock_github_class.return_value = mock_gh

            service.setup_github_api()

            assert service.github_repo == "test/demo"
            assert service.gh_repo is mock_gh.get_repo.return_value
            mock_gh.get_repo.assert_called_once_with("test/demo")

    def test_setup_without_remote(self, git_repo):
        """Test a repository without the remote."""
        service = PullRequestService(git_repo.working_dir, "test_token", remote_name="upstream")
        with pytest.raises(GitHubAPIError, match="upstream"):
            service.setup_github_api()

    def test_setup_non_github_remote(self, git_repo):
        """Test other hosts are rejected."""
        git_repo.delete_remote(git_repo.remote("origin"))
        git_repo.create_remote("origin", "git@gitlab.com:test/demo.git")
        service = PullRequestService(git_repo.working_dir, "test_token")
        with pytest.raises(GitHubAPIError, match="not a GitHub repository"):
            service.setup_github_api()

    def test_setup_api_error(self, git_repo):
        """Test GitHub errors during setup."""
        service = PullRequestService(git_repo.working_dir, "bad_token")
        with patch("relay_cli.services.git.github.Github") as mock_github_class:
            mock_github_class.return_value.get_repo.side_effect = GithubException(
                status=401, data={"message": "Bad credentials"}
            )
            with pytest.raises(GitHubAPIError):
                service.setup_github_api()


class TestCreatePullRequest:
    """Test PR creation."""

    def test_create(self, git_repo):
        service = PullRequestService(git_repo.working_dir, "test_token")
        service.github_repo = "test/demo"
        service.gh_repo = Mock()
        service.gh_repo.create_pull.return_value = Mock(
            number=7, html_url="https://github.com/test/demo/pull/7"
        )

        url = service.create_pull_request("fix: login", "Body", "main", "eng-42-fix", draft=True)

        assert url == "https://github.com/test/demo/pull/7"
        service.gh_repo.create_pull.assert_called_once_with(
            title="fix: login", body="Body", base="main", head="eng-42-fix", draft=True
        )

    def test_create_unpushed_branch(self, git_repo):
        """Test a rejected PR suggests pushing the branch."""
        service = PullRequestService(git_repo.working_dir, "test_token")
        service.gh_repo = Mock()
        service.gh_repo.create_pull.side_effect = GithubException(
            status=422, data={"message": "Validation Failed"}
        )

        with pytest.raises(GitHubAPIError, match="Validation Failed") as exc_info:
            service.create_pull_request("t", "b", "main", "eng-42-fix")
        assert exc_info.value.hint == "git push -u origin eng-42-fix"

    def test_close(self, git_repo):
        service = PullRequestService(git_repo.working_dir, "test_token")
        service.github = Mock()
        service.close()
        service.github.close.assert_called_once()
